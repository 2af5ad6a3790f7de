from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import psycopg2

from text_query.config import DEFAULT_CONFIG, TextSearchConfig
from text_query.fragments import build_headline, build_where
from text_query.options import parse_search_options
from text_query.order import compile_order
from text_query.tsquery import compile_query, strip_marker

logger = logging.getLogger(__name__)


# -----------------------
# Assembled query
# -----------------------

@dataclass
class FullTextQuery:
    """
    The SQL pieces of one full text search.

    where:        match predicate for the WHERE clause
    select_items: extra select list items (the headline, if requested)
    order_by:     ORDER BY clauses, in order
    rank:         rank expression, when the order includes a rank clause
    query_text:   the tsquery text (no "pg:" marker), for logging
    """
    where: str
    select_items: List[str] = field(default_factory=list)
    order_by: List[str] = field(default_factory=list)
    rank: Optional[str] = None
    query_text: str = ""

    def to_sql(
        self,
        table: str,
        columns: Sequence[str] = ("*",),
        *,
        include_rank: bool = False,
    ) -> str:
        """
        Render a SELECT statement over `table`.

        With include_rank, the rank expression is added to the select list as
        "rank" (only when there is one).
        """
        select_list = list(columns) + self.select_items
        if include_rank and self.rank:
            select_list.append(f"{self.rank} AS rank")

        sql = f"SELECT {', '.join(select_list)}\nFROM {table}\nWHERE {self.where}"
        if self.order_by:
            sql += f"\nORDER BY {', '.join(self.order_by)}"
        return sql

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_full_text_query(
    doc_name: Optional[str],
    tsv: Optional[str],
    query: str,
    options: Any = None,
    config: TextSearchConfig = DEFAULT_CONFIG,
) -> FullTextQuery:
    """
    Compile `query` once and build every fragment of the search from it.

    `options` is a SearchOptions or a mapping with the same keys:
      - with_headline:      True or an attribute name
      - headline_options:   dict passed to ts_headline
      - with_configuration: text search configuration for the WHERE clause
      - order, rank:        see compile_order

    Raises MalformedQuery when the query cannot be tokenized.
    """
    opts = parse_search_options(options)
    compiled = compile_query(query)

    where = build_where(
        doc_name,
        tsv,
        compiled,
        opts.with_configuration or config.text_search_config,
    )

    select_items: List[str] = []
    if opts.with_headline:
        if not doc_name:
            raise ValueError("a headline needs the document column name")
        attr = opts.with_headline if isinstance(opts.with_headline, str) else config.headline_attr
        select_items.append(
            build_headline(doc_name, compiled, attr, None, opts.headline_options)
        )

    order_by, rank = compile_order(opts.order, opts.rank, compiled, config)

    return FullTextQuery(
        where=where,
        select_items=select_items,
        order_by=order_by,
        rank=rank,
        query_text=strip_marker(compiled),
    )


# -----------------------
# DB helpers
# -----------------------

def get_conn():
    dsn = os.getenv("DATABASE_URL")
    if not dsn:
        raise RuntimeError("Missing DATABASE_URL")
    return psycopg2.connect(dsn)


def run_full_text_query(
    conn,
    table: str,
    doc_name: Optional[str],
    tsv: Optional[str],
    query: str,
    *,
    columns: Sequence[str] = ("*",),
    options: Any = None,
    include_rank: bool = False,
    config: TextSearchConfig = DEFAULT_CONFIG,
) -> List[tuple]:
    """
    Run a full text search over `table` and return the fetched rows.

    The statement is executed without parameters; everything the user typed
    reaches it only as quoted tsquery text.
    """
    ftq = build_full_text_query(doc_name, tsv, query, options, config)
    sql = ftq.to_sql(table, columns, include_rank=include_rank)
    logger.debug("full text query %r: %s", ftq.query_text, sql)

    with conn.cursor() as cur:
        # no params: the tsquery text is already inlined as a quoted literal,
        # so a "%" in it must not be read as a placeholder
        cur.execute(sql)
        rows = cur.fetchall()

    logger.debug("full text query %r returned %d rows", ftq.query_text, len(rows))
    return rows
