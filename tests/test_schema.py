"""スキーマ初期化ステップのテスト。"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from playlog.db import PLAYDB_STEPS, SONGDB_STEPS, apply_schema, connect_db
from playlog.errors import ErrorKind, StorageError
from playlog.playdb import get_count


def _normalize_sql(sql: str) -> str:
    return " ".join((sql or "").lower().split())


@pytest.mark.light
def test_apply_schema_is_idempotent(tmp_path: Path):
    con = connect_db(str(tmp_path / "songs.db"))
    try:
        assert apply_schema(con, SONGDB_STEPS) == 2
        assert apply_schema(con, SONGDB_STEPS) == 0
    finally:
        con.close()

    con = connect_db(str(tmp_path / "plays.db"))
    try:
        assert apply_schema(con, PLAYDB_STEPS) == 2
        assert apply_schema(con, PLAYDB_STEPS) == 0
    finally:
        con.close()


@pytest.mark.light
def test_natural_keys(play_con, song_con):
    """既存DBとの互換に必要な主キーを確認する。"""
    charts_sql = song_con.execute(
        "SELECT sql FROM sqlite_master WHERE type='table' AND name='charts'"
    ).fetchone()[0]
    assert "primary key (song_id, difficulty)" in _normalize_sql(charts_sql)

    plays_sql = play_con.execute(
        "SELECT sql FROM sqlite_master WHERE type='table' AND name='plays'"
    ).fetchone()[0]
    assert "user_play_date integer primary key not null" in _normalize_sql(plays_sql)

    rating_sql = play_con.execute(
        "SELECT sql FROM sqlite_master WHERE type='table' AND name='dx_rating_gen_3'"
    ).fetchone()[0]
    assert "user_play_date integer primary key not null" in _normalize_sql(rating_sql)


@pytest.mark.light
def test_existing_tables_are_kept(tmp_path: Path):
    """既存DBのテーブルとデータはそのまま残り、不足テーブルだけ作成されることを確認する。"""
    path = str(tmp_path / "plays.db")
    conn = sqlite3.connect(path)
    try:
        conn.execute("CREATE TABLE plays (user_play_date INTEGER PRIMARY KEY NOT NULL, song_id INTEGER NOT NULL, difficulty INTEGER NOT NULL)")
        conn.execute("INSERT INTO plays VALUES (1743108003, 11441, 3)")
        conn.commit()
    finally:
        conn.close()

    con = connect_db(path)
    try:
        assert apply_schema(con, PLAYDB_STEPS) == 1
        assert get_count(con) == 1
        assert con.execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name='dx_rating_gen_3'"
        ).fetchone() is not None
    finally:
        con.close()


@pytest.mark.light
def test_storage_error_keeps_cause(tmp_path: Path):
    """SQLite の例外が StorageError に変換され、元の例外を保持することを確認する。"""
    con = connect_db(str(tmp_path / "empty.db"))
    try:
        with pytest.raises(StorageError) as exc_info:
            get_count(con)
    finally:
        con.close()

    assert exc_info.value.kind is ErrorKind.STORAGE
    assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
