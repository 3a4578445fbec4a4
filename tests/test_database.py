import logging

from sqlalchemy import text

from tolkapp import database


def test_slow_queries_are_logged(db, monkeypatch, caplog):
    monkeypatch.setattr(database, "SLOW_QUERY_SECONDS", -1)

    with caplog.at_level(logging.WARNING, logger="tolkapp.database"):
        db.execute(text("SELECT 1"))

    assert "🐌 Slow query" in caplog.text
    assert "SELECT 1" in caplog.text


def test_fast_queries_are_not_logged(db, caplog):
    with caplog.at_level(logging.WARNING, logger="tolkapp.database"):
        db.execute(text("SELECT 1"))

    assert "Slow query" not in caplog.text
