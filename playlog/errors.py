"""
アプリケーション固有の例外定義モジュール。

曲DB/プレイDBの操作、プレイ記録の検証、外部ソースからの取り込みで発生する例外を
分類して扱うために、基底例外および派生例外を定義する。

呼び出し側は例外の具象型を調べる代わりに `kind` (ErrorKind) で分岐できる。
"""

from __future__ import annotations

import enum
from typing import Any, Optional


class ErrorKind(enum.Enum):
    """例外の分類。"""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONSISTENCY = "consistency"
    STORAGE = "storage"
    SOURCE = "source"


class PlaylogError(Exception):
    """プレイログシステム全体の基底例外。"""

    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(PlaylogError):
    """対象のレコードが存在しない場合の例外。"""

    kind = ErrorKind.NOT_FOUND


class SongNotFoundError(NotFoundError):
    """曲DBに指定 song_id の曲が存在しない場合の例外。"""

    def __init__(self, song_id: int):
        self.song_id = song_id
        super().__init__(
            f"Song with id {song_id} not found in database",
            details={"song_id": song_id},
        )


class PlayNotFoundError(NotFoundError):
    """プレイDBに指定 user_play_date のプレイが存在しない場合の例外。"""

    def __init__(self, user_play_date: int):
        self.user_play_date = user_play_date
        super().__init__(
            f"Playlog entry with date {user_play_date} not found in database",
            details={"user_play_date": user_play_date},
        )


class ValidationError(PlaylogError):
    """入力データが仕様を満たさない場合の例外。"""

    kind = ErrorKind.VALIDATION


class JudgementMismatchError(ValidationError):
    """判定数の内訳合計が total と一致しない場合の例外。"""

    def __init__(self, user_play_date: int, tier: str, total: int, actual: int):
        self.user_play_date = user_play_date
        self.tier = tier
        self.total = total
        self.actual = actual
        super().__init__(
            f"error validating play {user_play_date}: "
            f"no. of {tier} does not add up ({actual} != {total})",
            details={
                "user_play_date": user_play_date,
                "tier": tier,
                "total": total,
                "actual": actual,
            },
        )


class ConsistencyError(PlaylogError):
    """曲DBとプレイDBの内容が食い違っている場合の例外。"""

    kind = ErrorKind.CONSISTENCY


class ChartNotFoundError(ConsistencyError):
    """曲は存在するが、参照された難易度の譜面が存在しない場合の例外。"""

    def __init__(self, song_id: int, difficulty: int):
        self.song_id = song_id
        self.difficulty = difficulty
        super().__init__(
            f"no chart found for song {song_id} difficulty {int(difficulty)}",
            details={"song_id": song_id, "difficulty": int(difficulty)},
        )


class IncompleteSongError(ConsistencyError):
    """曲レコードに譜面が1件も紐付いていない場合の例外。"""

    def __init__(self, song_id: int):
        self.song_id = song_id
        super().__init__(
            f"no chart found for song {song_id}",
            details={"song_id": song_id},
        )


class StorageError(PlaylogError):
    """SQLite 由来の例外。元の例外は __cause__ に保持する。"""

    kind = ErrorKind.STORAGE


class ImportSourceError(PlaylogError):
    """外部ソース(API/JSON)からの取得・解釈に失敗した場合の例外。"""

    kind = ErrorKind.SOURCE
