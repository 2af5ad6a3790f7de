"""
SQL fragment builders for Postgres full text search.

Each builder takes raw or compiled ("pg:") query text, normalizes it once, and
returns a SQL text fragment:

    build_where     -> boolean expression for a WHERE clause
    build_rank      -> scalar ts_rank/ts_rank_cd call
    build_headline  -> ts_headline(...) AS <attr> select list item

Document, tsvector and configuration names are emitted as-is (they are column
names or expressions chosen by the caller). Query text and option strings are
embedded as single-quoted literals.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from text_query.config import DEFAULT_CONFIG, TextSearchConfig
from text_query.options import RankOptions, parse_rank_options
from text_query.tsquery import normalize_query

PG_CATALOG_PREFIX = "pg_catalog."


def sql_literal(s: str) -> str:
    """Quote `s` as a standard SQL string literal."""
    return "'" + s.replace("'", "''") + "'"


def _tsquery_call(query: str, config_literal: str = "") -> str:
    return f"to_tsquery({config_literal}{sql_literal(normalize_query(query))})"


def _given(name: Any) -> bool:
    return isinstance(name, str) and len(name) > 0


def build_rank(
    tsv: str,
    query: str,
    options: Any = None,
    config: TextSearchConfig = DEFAULT_CONFIG,
) -> str:
    """
    Build a call to the ranking function.

    Example:
        build_rank("tsv", "one two", {"_w": {"A": 1.0, "C": 0.1}})
        -> "ts_rank(array[0, 0.1, 0, 1.0], tsv, to_tsquery('one & two'), 16)"

    Note that the ranking functions only score "positive" terms. A query made
    only of negated terms ("-soap") matches documents that do not contain the
    words, and every one of them ranks 0.
    """
    opts: RankOptions = parse_rank_options(options)

    weights = opts.weight_array()
    weights_sql = f"array[{', '.join(str(w) for w in weights)}], " if weights is not None else ""

    norm = opts.normalization if opts.normalization is not None else config.default_normalization

    return f"{opts.function.value}({weights_sql}{tsv}, {_tsquery_call(query)}, {norm})"


def build_rank_order(
    tsv: str,
    query: str,
    options: Any = None,
    config: TextSearchConfig = DEFAULT_CONFIG,
) -> str:
    """ORDER BY clause listing the best matches first."""
    return f"{build_rank(tsv, query, options, config)} DESC"


def build_where(
    doc_name: Optional[str],
    tsv: Optional[str],
    query: str,
    config_name: Optional[str] = None,
) -> str:
    """
    Build the full text match predicate.

    If `tsv` is given it is used directly and `doc_name` is ignored; otherwise
    the document is converted on the fly with to_tsvector(doc_name).

    `config_name` is lower-cased and prefixed with "pg_catalog." when it does
    not already carry the prefix.
    """
    config_literal = ""
    if _given(config_name):
        cfg = config_name.lower()
        if not cfg.startswith(PG_CATALOG_PREFIX):
            cfg = PG_CATALOG_PREFIX + cfg
        config_literal = f"{sql_literal(cfg)}, "

    vector = tsv if _given(tsv) else f"to_tsvector({doc_name})"

    return f"({vector} @@ {_tsquery_call(query, config_literal)})"


def _headline_options(options: Dict[str, Any]) -> str:
    # ts_headline wants a single string: 'StartSel = <<, StopSel = >>'
    return sql_literal(", ".join(f"{k} = {v}" for k, v in options.items()))


def build_headline(
    doc_name: str,
    query: str,
    attr_name: Optional[str] = None,
    config_name: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Build the select list item for a "headline" pseudo-attribute.

    `config_name` is emitted as-is, so it is read as a column name; include
    the single quotes to pass a string constant ("'english'").
    `options` are passed to ts_headline (see the Postgres docs for
    StartSel, StopSel, MaxWords, MinWords, ...).
    """
    attr = attr_name if _given(attr_name) else "headline"
    cfg = f"{config_name}, " if _given(config_name) else ""
    opts = f", {_headline_options(options)}" if isinstance(options, dict) and options else ""

    return f"ts_headline({cfg}{doc_name}, {_tsquery_call(query)}{opts}) AS {attr}"
