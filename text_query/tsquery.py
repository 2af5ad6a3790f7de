"""
Compile tokenized search strings into Postgres `to_tsquery` text.

The compiled form carries a "pg:" prefix so that helpers which accept either
raw user input or already-compiled text can tell the two apart. The prefix is
a local convention and is stripped before anything is sent to the database.

    compile_query('foo bar')         -> 'pg:foo & bar'
    compile_query('pg:foo & bar')    -> 'pg:foo & bar'
    normalize_query('foo bar')       -> 'foo & bar'
"""

from __future__ import annotations

import logging
from typing import List, Optional, Type

from text_query.query_lang import (
    And,
    Around,
    Close,
    Minus,
    Open,
    Or,
    QuotedPhrase,
    Token,
    Word,
    to_debug_string,
    tokenize,
)

logger = logging.getLogger(__name__)

PG_QUERY_MARKER = "pg:"

# tokens after which a new operand needs an implicit AND
_OPERAND_ENDS = (Word, QuotedPhrase, Close)

# tokens after which a Minus does not need an AND in front of it
_NO_AND_BEFORE_MINUS = (And, Or, Minus, Around, Open)


def is_compiled(qs: str) -> bool:
    return qs.startswith(PG_QUERY_MARKER)


def strip_marker(qs: str) -> str:
    if is_compiled(qs):
        return qs[len(PG_QUERY_MARKER):]
    return qs


def _phrase_text(words: List[str], bare: bool = False) -> str:
    """
    ["soviet", "intelligence"] -> '("soviet" <-> "intelligence")'
    ["soviet"]                 -> '("soviet")', or '"soviet"' when bare

    A single word is left bare after "(" or a distance operator, so output
    fed back through tokenize() renders the same.
    """
    if bare and len(words) == 1:
        return f'"{words[0]}"'
    return "(" + " <-> ".join(f'"{w}"' for w in words) + ")"


def generate_query_text(tokens: List[Token]) -> str:
    """
    Build tsquery text from a token list, in a single pass.

    The only state kept is the kind of the last token emitted, which decides
    whether an implicit "&" goes in front of the next operand. Operator
    precedence is left to Postgres; dangling operators are not repaired.

    Returns the query text prefixed with the "pg:" marker.
    """
    qs = ""
    last: Optional[Type[Token]] = None

    for tok in tokens:
        if isinstance(tok, Word):
            if last not in (Open, Minus):
                qs += " "
            if last in _OPERAND_ENDS:
                qs += "& "
            qs += tok.text
        elif isinstance(tok, QuotedPhrase):
            words = tok.text.split()
            if not words:
                continue
            if last not in (Open, Minus):
                qs += " "
            if last in _OPERAND_ENDS:
                qs += "& "
            qs += _phrase_text(words, bare=last in (Open, Around))
        elif isinstance(tok, Or):
            if last not in (And, Or):
                qs += " |"
        elif isinstance(tok, And):
            if last not in (And, Or):
                qs += " &"
        elif isinstance(tok, Minus):
            if last is not None and last not in _NO_AND_BEFORE_MINUS:
                qs += " &"
            qs += "!" if last is Open else " !"
        elif isinstance(tok, Around):
            qs += " <->" if tok.distance == 1 else f" <{tok.distance}>"
        elif isinstance(tok, Open):
            if last in _OPERAND_ENDS:
                qs += " & "
            elif last in (And, Or, Around):
                qs += " "
            qs += "("
        elif isinstance(tok, Close):
            qs += ")"
        else:
            raise TypeError(f"unknown token {type(tok).__name__}")

        last = type(tok)

    return PG_QUERY_MARKER + qs.strip()


def compile_query(qs: str) -> str:
    """
    Return the canonical (marker-prefixed) form of `qs`.

    Already-compiled strings are returned untouched; nothing is re-tokenized.
    Raises MalformedQuery for input the tokenizer rejects.
    """
    if is_compiled(qs):
        return qs
    tokens = tokenize(qs)
    logger.debug("tokens for %r: %s", qs, to_debug_string(tokens))
    compiled = generate_query_text(tokens)
    logger.debug("compiled query %r -> %r", qs, compiled)
    return compiled


def normalize_query(qs: str) -> str:
    """
    Return tsquery text suitable for `to_tsquery`, without the marker.
    """
    return strip_marker(compile_query(qs))
