"""
曲DB(songs/charts)への登録・参照処理を提供するモジュール。

処理方針:
- 曲・譜面は INSERT OR IGNORE で登録し、既存レコードは上書きしない
- 1曲分(曲+全譜面)の登録は1トランザクションで行う
- 譜面は (song_id, difficulty) を主キーとして管理する
"""

from __future__ import annotations

import sqlite3
from typing import List, Tuple

from playlog.db import storage_errors
from playlog.errors import ChartNotFoundError, IncompleteSongError, SongNotFoundError
from playlog.models import Chart, Difficulty, Song

_SONG_COLUMNS = "song_id, name, artist, type, bpm, category, version, sort"


def add_song(con: sqlite3.Connection, song: Song) -> None:
    """
    曲と譜面を登録する。

    既に存在する曲・譜面はスキップする(既存データを優先する)。
    途中で失敗した場合はロールバックし、1件も登録しない。

    Args:
        con: 曲DBの接続。
        song: 曲情報。

    Raises:
        StorageError: SQLiteの操作に失敗した場合。
    """
    with storage_errors(), con:
        con.execute(f"""
        INSERT OR IGNORE INTO songs ({_SONG_COLUMNS})
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            song.song_id,
            song.name,
            song.artist,
            song.type,
            song.bpm,
            song.category,
            song.version,
            song.sort,
        ))

        for chart in song.charts:
            con.execute("""
            INSERT OR IGNORE INTO charts (
                song_id, difficulty, level,
                internal_level, notes_designer, max_notes
            ) VALUES (?, ?, ?, ?, ?, ?)
            """, (
                song.song_id,
                int(chart.difficulty),
                chart.level,
                chart.internal_level,
                chart.notes_designer,
                chart.max_notes,
            ))


def _load_charts(con: sqlite3.Connection, song_id: int) -> List[Chart]:
    cur = con.execute("""
    SELECT difficulty, level, internal_level, notes_designer, max_notes
    FROM charts
    WHERE song_id=?
    ORDER BY difficulty
    """, (song_id,))
    return [
        Chart(
            difficulty=Difficulty(row["difficulty"]),
            level=row["level"],
            internal_level=row["internal_level"],
            notes_designer=row["notes_designer"],
            max_notes=row["max_notes"],
        )
        for row in cur.fetchall()
    ]


def _row_to_song(con: sqlite3.Connection, row: sqlite3.Row) -> Song:
    """
    songs の1行と、その曲の譜面一覧から Song を組み立てる。

    Raises:
        IncompleteSongError: 譜面が1件も存在しない場合。
    """
    charts = _load_charts(con, row["song_id"])
    if not charts:
        raise IncompleteSongError(row["song_id"])

    return Song(
        song_id=row["song_id"],
        name=row["name"],
        artist=row["artist"],
        type=row["type"],
        bpm=row["bpm"],
        category=row["category"],
        version=row["version"],
        sort=row["sort"],
        charts=charts,
    )


def get_song(con: sqlite3.Connection, song_id: int) -> Song:
    """
    song_id に対応する曲を譜面一覧付きで取得する。

    Args:
        con: 曲DBの接続。
        song_id: 曲ID。

    Returns:
        Song。譜面は難易度順。

    Raises:
        SongNotFoundError: 曲が存在しない場合。
        IncompleteSongError: 曲は存在するが譜面が1件もない場合。
        StorageError: SQLiteの操作に失敗した場合。
    """
    with storage_errors():
        cur = con.execute(
            f"SELECT {_SONG_COLUMNS} FROM songs WHERE song_id=?", (song_id,)
        )
        row = cur.fetchone()
        if row is None:
            raise SongNotFoundError(song_id)
        return _row_to_song(con, row)


def get_songs_by_name(con: sqlite3.Connection, name: str) -> List[Song]:
    """
    曲名の完全一致で曲を取得する。

    同名曲(スタンダード/でらっくす譜面、別アーティストの同名曲)は複数件返る。
    該当なしの場合は空リストを返す。

    Args:
        con: 曲DBの接続。
        name: 曲名。

    Returns:
        song_id 昇順の Song リスト。
    """
    with storage_errors():
        cur = con.execute(
            f"SELECT {_SONG_COLUMNS} FROM songs WHERE name=? ORDER BY song_id",
            (name,),
        )
        return [_row_to_song(con, row) for row in cur.fetchall()]


def get_songs_by_version(con: sqlite3.Connection, version: str) -> List[Song]:
    """
    収録バージョン名で曲を取得する(大文字小文字は区別しない)。

    Args:
        con: 曲DBの接続。
        version: バージョン名。

    Returns:
        song_id 昇順の Song リスト。
    """
    with storage_errors():
        cur = con.execute(
            f"""
            SELECT {_SONG_COLUMNS} FROM songs
            WHERE version=? COLLATE NOCASE
            ORDER BY song_id
            """,
            (version,),
        )
        return [_row_to_song(con, row) for row in cur.fetchall()]


def find_chart(song: Song, difficulty: Difficulty) -> Chart:
    """
    曲の譜面一覧から指定難易度の譜面を返す。

    Raises:
        ChartNotFoundError: 指定難易度の譜面が存在しない場合。
    """
    for chart in song.charts:
        if chart.difficulty == difficulty:
            return chart
    raise ChartNotFoundError(song.song_id, difficulty)


def resolve_chart(
    con: sqlite3.Connection,
    song_id: int,
    difficulty: Difficulty,
) -> Tuple[Song, Chart]:
    """
    プレイが参照する曲と譜面を曲DBから取得する。

    プレイ側から見た参照解決のため、曲自体が存在しない場合も
    「曲DBが不完全」として ChartNotFoundError を送出する。

    Returns:
        (曲, 譜面) のタプル。

    Raises:
        ChartNotFoundError: 曲または指定難易度の譜面が存在しない場合。
    """
    try:
        song = get_song(con, song_id)
    except SongNotFoundError as e:
        raise ChartNotFoundError(song_id, difficulty) from e
    return song, find_chart(song, difficulty)
