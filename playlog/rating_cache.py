"""
DXレーティングのキャッシュ(dx_rating_gen_3)を提供するモジュール。

プレイDBの plays と曲DBの譜面定数から単曲レーティングを算出し、
user_play_date をキーとして保存する。参照時に未算出のプレイがあれば先に算出する。

処理方針:
- 算出済みの行は更新しない(算出時点の譜面定数を保持する)
- 同時に複数プロセスが算出しても INSERT OR IGNORE により先勝ちとなる
- 譜面が見つからないプレイがある場合はその時点で失敗する(リトライしない)
"""

from __future__ import annotations

import logging
import sqlite3

from playlog.db import storage_errors
from playlog.errors import PlayNotFoundError
from playlog.models import RatingCacheEntry
from playlog.playdb import SELECT_PLAYS, row_to_play
from playlog.rating import score_to_dx_rating
from playlog.songdb import resolve_chart

logger = logging.getLogger(__name__)


def populate_dx_rating(play_con: sqlite3.Connection, song_con: sqlite3.Connection) -> int:
    """
    未算出のプレイのレーティングをすべて算出して保存する。

    通常はレーティング参照時に自動で呼ばれるため、直接呼ぶ必要はない。

    Args:
        play_con: プレイDBの接続。
        song_con: 曲DBの接続。

    Returns:
        今回算出した件数。

    Raises:
        ChartNotFoundError: プレイが参照する曲・難易度の譜面が曲DBに存在しない場合。
        StorageError: SQLiteの操作に失敗した場合。
    """
    computed = 0
    while True:
        with storage_errors():
            cur = play_con.execute(f"""
            {SELECT_PLAYS} WHERE user_play_date NOT IN
            (SELECT user_play_date FROM dx_rating_gen_3)
            LIMIT 1
            """)
            row = cur.fetchone()
        if row is None:
            break

        play = row_to_play(row)
        song, chart = resolve_chart(song_con, play.song_id, play.difficulty)
        rating = score_to_dx_rating(play.score, chart.internal_level)

        with storage_errors(), play_con:
            play_con.execute("""
            INSERT OR IGNORE INTO dx_rating_gen_3
            (user_play_date, internal_level, rating, version)
            VALUES (?, ?, ?, ?)
            """, (play.user_play_date, chart.internal_level, rating, song.version))
        computed += 1

    if computed:
        logger.debug("dx rating computed for %d plays", computed)
    return computed


def get_rating_entry(
    play_con: sqlite3.Connection,
    song_con: sqlite3.Connection,
    user_play_date: int,
) -> RatingCacheEntry:
    """
    プレイ1件分のレーティング算出結果を返す。

    Raises:
        PlayNotFoundError: 指定日時のプレイが存在しない場合。
    """
    populate_dx_rating(play_con, song_con)

    with storage_errors():
        cur = play_con.execute("""
        SELECT user_play_date, internal_level, rating, version
        FROM dx_rating_gen_3 WHERE user_play_date=?
        """, (user_play_date,))
        row = cur.fetchone()
    if row is None:
        raise PlayNotFoundError(user_play_date)

    return RatingCacheEntry(
        user_play_date=row["user_play_date"],
        internal_level=row["internal_level"],
        rating=row["rating"],
        version=row["version"],
    )


def get_dx_rating(
    play_con: sqlite3.Connection,
    song_con: sqlite3.Connection,
    user_play_date: int,
) -> int:
    """user_play_date のプレイの単曲DXレーティングを返す。"""
    return get_rating_entry(play_con, song_con, user_play_date).rating
