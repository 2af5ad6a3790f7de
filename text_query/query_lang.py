from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List


# -----------------------
# Errors
# -----------------------

class TextQueryError(Exception):
    """Base class for errors raised by the text query compiler."""


class MalformedQuery(TextQueryError):
    """
    Raised when a query string cannot be split into tokens.

    `query` is the original string, `location` the (rough) index where the
    problem was detected.
    """

    def __init__(self, query: str, location: int):
        self.query = query
        self.location = location
        super().__init__(f"malformed query string '{query}'")


# -----------------------
# Token types
# -----------------------

@dataclass(frozen=True)
class Token:
    """Base type for query tokens."""


@dataclass(frozen=True)
class Word(Token):
    text: str


@dataclass(frozen=True)
class QuotedPhrase(Token):
    text: str


@dataclass(frozen=True)
class And(Token):
    pass


@dataclass(frozen=True)
class Or(Token):
    pass


@dataclass(frozen=True)
class Minus(Token):
    pass


@dataclass(frozen=True)
class Around(Token):
    distance: int


@dataclass(frozen=True)
class Open(Token):
    pass


@dataclass(frozen=True)
class Close(Token):
    pass


class _State(enum.Enum):
    SCAN = "scan"
    QUOTE = "quote"
    WORD = "word"
    PROXIMITY = "proximity"


# -----------------------
# Tokenizer
# -----------------------

def _collapse(s: str) -> str:
    return " ".join(s.split())


def _classify_word(word: str) -> Token:
    """Bareword reclassification, done only once the word is terminated."""
    upper = word.upper()
    if upper == "OR":
        return Or()
    if upper == "AND":
        return And()
    return Word(text=word)


def tokenize(qs: str) -> List[Token]:
    """
    Break a Google-style query string into tokens.

    Recognized lexemes:
      - words
      - "quoted phrases" (internal whitespace collapsed)
      - OR, or, |          -> Or
      - AND, and, &        -> And
      - -, !               -> Minus
      - AROUND(n), <n>     -> Around(n); <-> is Around(1)
      - ( and )            -> Open, Close

    A quote also ends a word in progress, so one"two" is a word then a
    phrase. An unterminated quote is closed at end of input. A bad proximity
    parameter raises MalformedQuery.
    """
    tokens: List[Token] = []
    cur = ""
    closer = ""
    state = _State.SCAN

    for idx, c in enumerate(qs):
        if state is _State.QUOTE:
            if c == '"':
                tokens.append(QuotedPhrase(text=_collapse(cur)))
                state = _State.SCAN
                cur = ""
            else:
                cur += c
            continue

        if state is _State.PROXIMITY:
            if c == closer:
                if cur == "-" and closer == ">":
                    tokens.append(Around(distance=1))
                elif cur.isdigit():
                    tokens.append(Around(distance=int(cur)))
                else:
                    raise MalformedQuery(qs, idx)
                state = _State.SCAN
                cur = ""
            elif c in "0123456789" and cur != "-":
                cur += c
            elif c == "-" and not cur and closer == ">":
                cur = c
            else:
                raise MalformedQuery(qs, idx)
            continue

        if c == '"':
            if state is _State.WORD:
                tokens.append(_classify_word(cur))
            state = _State.QUOTE
            cur = ""
        elif c in "|&-!)":
            if state is _State.WORD:
                tokens.append(_classify_word(cur))
            if c == "|":
                tokens.append(Or())
            elif c == "&":
                tokens.append(And())
            elif c == ")":
                tokens.append(Close())
            else:
                tokens.append(Minus())
            state = _State.SCAN
            cur = ""
        elif c == "(":
            if state is _State.WORD and cur.upper() == "AROUND":
                state = _State.PROXIMITY
                closer = ")"
            else:
                if state is _State.WORD:
                    tokens.append(_classify_word(cur))
                tokens.append(Open())
                state = _State.SCAN
            cur = ""
        elif c == "<":
            if state is _State.WORD:
                tokens.append(_classify_word(cur))
            state = _State.PROXIMITY
            closer = ">"
            cur = ""
        elif c == ">":
            raise MalformedQuery(qs, idx)
        elif c.isspace():
            if state is _State.WORD:
                tokens.append(_classify_word(cur))
                state = _State.SCAN
                cur = ""
        else:
            if state is _State.SCAN:
                state = _State.WORD
                cur = c
            else:
                cur += c

    # flush whatever the final state was holding
    if state is _State.WORD:
        tokens.append(_classify_word(cur))
    elif state is _State.QUOTE:
        tokens.append(QuotedPhrase(text=_collapse(cur)))
    elif state is _State.PROXIMITY:
        raise MalformedQuery(qs, len(qs))

    return tokens


def to_debug_string(tokens: List[Token]) -> str:
    """
    A stable, explicit representation of a token list for logging/debugging.
    """
    parts: List[str] = []
    for tok in tokens:
        if isinstance(tok, Word):
            parts.append(f'WORD("{tok.text}")')
        elif isinstance(tok, QuotedPhrase):
            parts.append(f'QUOTED("{tok.text}")')
        elif isinstance(tok, And):
            parts.append("AND")
        elif isinstance(tok, Or):
            parts.append("OR")
        elif isinstance(tok, Minus):
            parts.append("MINUS")
        elif isinstance(tok, Around):
            parts.append(f"AROUND({tok.distance})")
        elif isinstance(tok, Open):
            parts.append("OPEN")
        elif isinstance(tok, Close):
            parts.append("CLOSE")
        else:
            raise TypeError(f"unknown token {type(tok).__name__}")
    return " ".join(parts)
