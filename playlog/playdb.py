"""
プレイDB(plays)への登録・参照処理を提供するモジュール。

処理方針:
- 登録前に判定数を検証し、不正なプレイは1件も書き込まない
- user_play_date を自然キーとし、INSERT OR IGNORE で登録する
  (既に存在するプレイは上書きしない)
- matching_users は JSON 文字列として1列に保存する
"""

from __future__ import annotations

import dataclasses
import json
import sqlite3
from typing import Any, List

from playlog.db import storage_errors
from playlog.errors import PlayNotFoundError
from playlog.models import ComboStatus, Difficulty, Play, SyncStatus
from playlog.validation import validate_play

PLAY_COLUMNS = tuple(f.name for f in dataclasses.fields(Play))

_BOOL_COLUMNS = {"is_clear", "is_new_record", "is_dx_new_record"}
_ENUM_COLUMNS = {
    "difficulty": Difficulty,
    "combo_status": ComboStatus,
    "sync_status": SyncStatus,
}

SELECT_PLAYS = f"SELECT {', '.join(PLAY_COLUMNS)} FROM plays"


def _play_to_params(play: Play) -> tuple:
    params: List[Any] = []
    for name in PLAY_COLUMNS:
        value = getattr(play, name)
        if name == "matching_users":
            value = json.dumps(list(value), ensure_ascii=False)
        elif name in _BOOL_COLUMNS:
            value = int(bool(value))
        elif name in _ENUM_COLUMNS:
            value = int(value)
        params.append(value)
    return tuple(params)


def row_to_play(row: sqlite3.Row) -> Play:
    values = {}
    for name in PLAY_COLUMNS:
        value = row[name]
        if name == "matching_users":
            # 旧データには "null" が入っていることがある
            value = json.loads(value or "null") or []
        elif name in _BOOL_COLUMNS:
            value = bool(value)
        elif name in _ENUM_COLUMNS:
            value = _ENUM_COLUMNS[name](value or 0)
        elif value is None:
            value = 0
        values[name] = value
    return Play(**values)


def add_play(con: sqlite3.Connection, play: Play) -> None:
    """
    プレイを登録する。

    同じ user_play_date のプレイが既に存在する場合は何もしない。

    Args:
        con: プレイDBの接続。
        play: プレイ記録。

    Raises:
        JudgementMismatchError: 判定数の内訳が合計と一致しない場合(書き込みは行わない)。
        StorageError: SQLiteの操作に失敗した場合。
    """
    validate_play(play)

    placeholders = ", ".join("?" for _ in PLAY_COLUMNS)
    with storage_errors(), con:
        con.execute(
            f"INSERT OR IGNORE INTO plays ({', '.join(PLAY_COLUMNS)}) "
            f"VALUES ({placeholders})",
            _play_to_params(play),
        )


def get_play(con: sqlite3.Connection, user_play_date: int) -> Play:
    """
    user_play_date に対応するプレイを取得する。

    Raises:
        PlayNotFoundError: プレイが存在しない場合。
        StorageError: SQLiteの操作に失敗した場合。
    """
    with storage_errors():
        cur = con.execute(
            f"{SELECT_PLAYS} WHERE user_play_date=?", (user_play_date,)
        )
        row = cur.fetchone()
    if row is None:
        raise PlayNotFoundError(user_play_date)
    return row_to_play(row)


def get_plays(
    con: sqlite3.Connection,
    ascending: bool,
    limit: int,
    offset: int,
) -> List[Play]:
    """
    プレイを user_play_date 順に取得する。

    Args:
        con: プレイDBの接続。
        ascending: True なら古い順、False なら新しい順。
        limit: 最大取得件数。
        offset: 読み飛ばす件数。

    Returns:
        Play のリスト。件数は limit 以下。

    Raises:
        ValueError: limit/offset が負の場合。
    """
    if limit < 0 or offset < 0:
        raise ValueError(f"limit/offset must be >= 0: limit={limit} offset={offset}")

    order = "ASC" if ascending else "DESC"
    with storage_errors():
        cur = con.execute(
            f"{SELECT_PLAYS} ORDER BY user_play_date {order} LIMIT ? OFFSET ?",
            (limit, offset),
        )
        rows = cur.fetchall()
    return [row_to_play(row) for row in rows]


def get_count(con: sqlite3.Connection) -> int:
    """登録済みプレイ件数を返す。"""
    with storage_errors():
        cur = con.execute("SELECT COUNT(*) AS cnt FROM plays")
        return int(cur.fetchone()["cnt"])


def get_best_score_before_date(
    con: sqlite3.Connection,
    song_id: int,
    difficulty: Difficulty,
    user_play_date: int,
) -> int:
    """
    指定譜面について、指定日時より前のプレイの最高スコアを返す。

    該当するプレイがない場合は 0 を返す(「過去の自己ベストなし」を表す)。

    Args:
        con: プレイDBの接続。
        song_id: 曲ID。
        difficulty: 難易度。
        user_play_date: 基準日時(この値ちょうどのプレイは含めない)。

    Returns:
        最高スコア。
    """
    with storage_errors():
        cur = con.execute("""
        SELECT MAX(score) AS best FROM plays
        WHERE song_id=? AND difficulty=? AND user_play_date<?
        """, (song_id, int(difficulty), user_play_date))
        best = cur.fetchone()["best"]
    return int(best) if best is not None else 0
