from __future__ import annotations

import logging
import re
from typing import Any, List, Optional, Tuple

from text_query.config import DEFAULT_CONFIG, TextSearchConfig
from text_query.fragments import build_rank
from text_query.options import parse_rank_options
from text_query.tsquery import compile_query, strip_marker

logger = logging.getLogger(__name__)

_ORDER_SPLIT_RE = re.compile(r",\s*")


def _order_list(order: Any, config: TextSearchConfig) -> List[str]:
    if order is False:
        return []
    if isinstance(order, str):
        return _ORDER_SPLIT_RE.split(order)
    if isinstance(order, (list, tuple)):
        return [str(o) for o in order]
    return list(config.default_order)


def compile_order(
    order: Any,
    rank: Any = None,
    query: Optional[str] = None,
    config: TextSearchConfig = DEFAULT_CONFIG,
) -> Tuple[List[str], Optional[str]]:
    """
    Convert an order option into a list of ORDER BY clauses.

    `order` is a comma-separated string or a list of clauses. False, "" or []
    mean no ordering; None means config.default_order.

    A clause whose first word is "rank" (any case) orders by text search
    score: it is replaced by the rank expression built from `rank` (see
    RankOptions; the tsvector comes from rank.tsv) and `query`, followed by
    the rest of the clause or "DESC". Other clauses pass through unchanged.
    Without a query there is nothing to score, and a rank clause falls back to
    config.default_order.

    Returns (clauses, rank_expression); rank_expression is None unless a rank
    clause was generated, and can be added to the select list.
    """
    clauses: List[str] = []
    rank_expr: Optional[str] = None
    rank_opts = None
    compiled = compile_query(query) if query else ""

    for entry in _order_list(order, config):
        entry = entry.strip()
        if not entry:
            continue

        words = entry.split()
        if words[0].lower() != "rank":
            clauses.append(entry)
            continue

        if not strip_marker(compiled):
            logger.debug("rank order without a query; using %s", list(config.default_order))
            clauses.extend(config.default_order)
            continue

        if rank_opts is None:
            rank_opts = parse_rank_options(rank)
        tsv = rank_opts.tsv or config.default_tsv
        rank_expr = build_rank(tsv, compiled, rank_opts, config)
        direction = " ".join(words[1:]) or "DESC"
        clauses.append(f"{rank_expr} {direction}")

    return clauses, rank_expr
