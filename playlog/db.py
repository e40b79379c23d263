"""
SQLiteへの接続とスキーマ初期化を提供するモジュール。

曲DB(songs/charts)とプレイDB(plays/dx_rating_gen_3)は別ファイルとして扱う。

処理方針:
- スキーマ変更は順序付きのステップ一覧として定義する
- 各ステップは「適用済みかどうか」をDBの実体(テーブル/列/値)から判定し、
  未適用のものだけを適用する(バージョン番号は持たない)
- ステップは追加のみとし、既存の列・データを削除するステップは作らない
"""

from __future__ import annotations

import contextlib
import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable, Iterator, Sequence

from playlog.errors import StorageError

logger = logging.getLogger(__name__)


def connect_db(path: str) -> sqlite3.Connection:
    """
    SQLite DBへ接続する。

    Args:
        path: SQLiteファイルパス。":memory:" も可。

    Returns:
        sqlite3.Connectionオブジェクト。
    """
    con = sqlite3.connect(path)
    con.row_factory = sqlite3.Row
    return con


@contextlib.contextmanager
def storage_errors() -> Iterator[None]:
    """sqlite3 由来の例外を StorageError に変換して上位へ伝播する。"""
    try:
        yield
    except sqlite3.Error as e:
        raise StorageError(f"sqlite error: {e}") from e


def table_exists(con: sqlite3.Connection, table_name: str) -> bool:
    cur = con.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?",
        (table_name,),
    )
    return cur.fetchone() is not None


@dataclass(frozen=True)
class SchemaStep:
    """
    スキーマ変更1件分。

    Attributes:
        name: ログ出力用の名前。
        is_applied: 適用済みであれば True を返す判定関数。
        apply: 変更を適用する関数。
    """

    name: str
    is_applied: Callable[[sqlite3.Connection], bool]
    apply: Callable[[sqlite3.Connection], None]


def _create_table_step(name: str, table_name: str, ddl: str) -> SchemaStep:
    return SchemaStep(
        name=name,
        is_applied=lambda con: table_exists(con, table_name),
        apply=lambda con: con.execute(ddl),
    )


_SONGS_DDL = """
CREATE TABLE IF NOT EXISTS songs (
    song_id  INTEGER PRIMARY KEY NOT NULL,
    name     TEXT,
    artist   TEXT,
    type     TEXT,
    bpm      INTEGER,
    category TEXT,
    version  TEXT,
    sort     TEXT
)
"""

_CHARTS_DDL = """
CREATE TABLE IF NOT EXISTS charts (
    song_id        INTEGER NOT NULL,
    difficulty     INTEGER NOT NULL,
    level          INTEGER,
    internal_level INTEGER,
    notes_designer TEXT,
    max_notes      INTEGER,
    PRIMARY KEY (song_id, difficulty)
)
"""

_PLAYS_DDL = """
CREATE TABLE IF NOT EXISTS plays (
    user_play_date INTEGER PRIMARY KEY NOT NULL,
    song_id        INTEGER NOT NULL,
    difficulty     INTEGER NOT NULL,

    score            INTEGER,
    dx_score         INTEGER,
    combo_status     INTEGER,
    sync_status      INTEGER,
    is_clear         INTEGER,
    is_new_record    INTEGER,
    is_dx_new_record INTEGER,
    track            INTEGER,
    matching_users   TEXT,

    max_combo   INTEGER,
    total_combo INTEGER,
    max_sync    INTEGER,
    total_sync  INTEGER,

    fast_count    INTEGER,
    late_count    INTEGER,
    before_rating INTEGER,
    after_rating  INTEGER,

    tap_critical_perfect INTEGER,
    tap_perfect          INTEGER,
    tap_great            INTEGER,
    tap_good             INTEGER,
    tap_miss             INTEGER,

    hold_critical_perfect INTEGER,
    hold_perfect          INTEGER,
    hold_great            INTEGER,
    hold_good             INTEGER,
    hold_miss             INTEGER,

    slide_critical_perfect INTEGER,
    slide_perfect          INTEGER,
    slide_great            INTEGER,
    slide_good             INTEGER,
    slide_miss             INTEGER,

    touch_critical_perfect INTEGER,
    touch_perfect          INTEGER,
    touch_great            INTEGER,
    touch_good             INTEGER,
    touch_miss             INTEGER,

    break_critical_perfect INTEGER,
    break_perfect          INTEGER,
    break_great            INTEGER,
    break_good             INTEGER,
    break_miss             INTEGER,

    total_critical_perfect INTEGER,
    total_perfect          INTEGER,
    total_great            INTEGER,
    total_good             INTEGER,
    total_miss             INTEGER
)
"""

_DX_RATING_GEN_3_DDL = """
CREATE TABLE IF NOT EXISTS dx_rating_gen_3 (
    user_play_date INTEGER PRIMARY KEY NOT NULL,
    internal_level INTEGER,
    rating         INTEGER,
    version        TEXT
)
"""


SONGDB_STEPS: Sequence[SchemaStep] = (
    _create_table_step("create songs", "songs", _SONGS_DDL),
    _create_table_step("create charts", "charts", _CHARTS_DDL),
)

PLAYDB_STEPS: Sequence[SchemaStep] = (
    _create_table_step("create plays", "plays", _PLAYS_DDL),
    _create_table_step("create dx_rating_gen_3", "dx_rating_gen_3", _DX_RATING_GEN_3_DDL),
)


def apply_schema(con: sqlite3.Connection, steps: Sequence[SchemaStep]) -> int:
    """
    未適用のスキーマステップを順に適用する。

    各ステップは1トランザクションで適用する。

    Args:
        con: SQLite接続。
        steps: 適用するステップ一覧(適用順)。

    Returns:
        今回適用したステップ数。

    Raises:
        StorageError: SQLiteの操作に失敗した場合。
    """
    applied = 0
    with storage_errors():
        for step in steps:
            if step.is_applied(con):
                continue
            with con:
                step.apply(con)
            logger.info("schema step applied: %s", step.name)
            applied += 1
    return applied


def open_songdb(path: str) -> sqlite3.Connection:
    """曲DBへ接続し、スキーマを最新化して返す。"""
    con = connect_db(path)
    apply_schema(con, SONGDB_STEPS)
    return con


def open_playdb(path: str) -> sqlite3.Connection:
    """プレイDBへ接続し、スキーマを最新化して返す。"""
    con = connect_db(path)
    apply_schema(con, PLAYDB_STEPS)
    return con
