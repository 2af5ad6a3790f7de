#!/usr/bin/env python3
"""
Unit tests for full text query assembly and execution.

The psycopg2 connection is replaced by a small fake that records the SQL.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from text_query import search
from text_query.config import TextSearchConfig
from text_query.options import SearchOptions
from text_query.query_lang import MalformedQuery
from text_query.search import (
    FullTextQuery,
    build_full_text_query,
    get_conn,
    run_full_text_query,
)


class FakeCursor:
    def __init__(self, rows):
        self.rows = rows
        self.executed = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))

    def fetchall(self):
        return self.rows


class FakeConn:
    def __init__(self, rows=None):
        self.cur = FakeCursor(rows or [])

    def cursor(self):
        return self.cur


# ============================================================================
# Assembly
# ============================================================================

def test_defaults():
    ftq = build_full_text_query("mydoc", "mytsv", "pg:one | two")
    assert ftq.where == "(mytsv @@ to_tsquery('one | two'))"
    assert ftq.select_items == []
    assert ftq.order_by == ["updated_at DESC"]
    assert ftq.rank is None
    assert ftq.query_text == "one | two"


def test_null_tsvector_and_raw_query():
    ftq = build_full_text_query("mydoc", None, "one two")
    assert ftq.where == "(to_tsvector(mydoc) @@ to_tsquery('one & two'))"
    assert ftq.query_text == "one & two"


def test_headline():
    ftq = build_full_text_query("mydoc", "mytsv", "one two", {"with_headline": True})
    assert ftq.where == "(mytsv @@ to_tsquery('one & two'))"
    assert ftq.select_items == ["ts_headline(mydoc, to_tsquery('one & two')) AS headline"]

    ftq = build_full_text_query("mydoc", "mytsv", "one two", {"with_headline": "myhl"})
    assert ftq.select_items == ["ts_headline(mydoc, to_tsquery('one & two')) AS myhl"]


def test_headline_options_and_config_attr():
    cfg = TextSearchConfig(headline_attr="excerpt")
    ftq = build_full_text_query(
        "mydoc",
        "mytsv",
        "one",
        SearchOptions(with_headline=True, headline_options={"MaxWords": 20}),
        cfg,
    )
    assert ftq.select_items == ["ts_headline(mydoc, to_tsquery('one'), 'MaxWords = 20') AS excerpt"]


def test_headline_needs_document():
    with pytest.raises(ValueError):
        build_full_text_query(None, "mytsv", "one", {"with_headline": True})


def test_configuration():
    ftq = build_full_text_query(None, "mytsv", "one", {"with_configuration": "simple"})
    assert ftq.where == "(mytsv @@ to_tsquery('pg_catalog.simple', 'one'))"

    cfg = TextSearchConfig(text_search_config="english")
    ftq = build_full_text_query(None, "mytsv", "one", None, cfg)
    assert ftq.where == "(mytsv @@ to_tsquery('pg_catalog.english', 'one'))"


def test_rank_order():
    ftq = build_full_text_query(
        "mydoc", "mytsv", "one OR two",
        {"order": "rank, id ASC", "rank": {"tsv": "mytsv", "_n": 4}},
    )
    rank = "ts_rank(mytsv, to_tsquery('one | two'), 4)"
    assert ftq.rank == rank
    assert ftq.order_by == [f"{rank} DESC", "id ASC"]


def test_no_order():
    ftq = build_full_text_query("mydoc", "mytsv", "one", {"order": False})
    assert ftq.order_by == []


def test_malformed_query_propagates():
    with pytest.raises(MalformedQuery):
        build_full_text_query("mydoc", "mytsv", "one <two>")


def test_to_sql():
    ftq = build_full_text_query(
        "body", "tsv", "foo bar",
        {"order": "rank", "with_headline": True},
    )
    rank = "ts_rank(tsv, to_tsquery('foo & bar'), 16)"
    assert ftq.to_sql("articles", ["id", "title"], include_rank=True) == (
        "SELECT id, title, ts_headline(body, to_tsquery('foo & bar')) AS headline, "
        f"{rank} AS rank\n"
        "FROM articles\n"
        "WHERE (tsv @@ to_tsquery('foo & bar'))\n"
        f"ORDER BY {rank} DESC"
    )


def test_to_sql_without_order():
    ftq = FullTextQuery(where="(tsv @@ to_tsquery('x'))")
    assert ftq.to_sql("t") == "SELECT *\nFROM t\nWHERE (tsv @@ to_tsquery('x'))"
    assert ftq.to_sql("t", include_rank=True) == "SELECT *\nFROM t\nWHERE (tsv @@ to_tsquery('x'))"


def test_to_dict():
    ftq = FullTextQuery(where="w", order_by=["id"])
    assert ftq.to_dict() == {
        "where": "w",
        "select_items": [],
        "order_by": ["id"],
        "rank": None,
        "query_text": "",
    }


# ============================================================================
# Execution
# ============================================================================

def test_run_full_text_query():
    conn = FakeConn(rows=[(1, "first"), (2, "second")])
    rows = run_full_text_query(conn, "articles", "body", None, "foo -bar", columns=["id", "title"])

    assert rows == [(1, "first"), (2, "second")]
    assert conn.cur.executed == [(
        "SELECT id, title\n"
        "FROM articles\n"
        "WHERE (to_tsvector(body) @@ to_tsquery('foo & !bar'))\n"
        "ORDER BY updated_at DESC",
        None,
    )]


def test_get_conn_requires_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError):
        get_conn()


def test_get_conn(monkeypatch):
    calls = []
    monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/test")
    monkeypatch.setattr(search.psycopg2, "connect", lambda dsn: calls.append(dsn) or "conn")

    assert get_conn() == "conn"
    assert calls == ["postgresql://localhost/test"]
