"""
データモデル定義モジュール。

曲DB・プレイDB・レーティングキャッシュの間で受け渡すレコードを定義する。

- Song / Chart: 曲マスタ(曲と難易度ごとの譜面)
- Play: 1プレイ分の記録(user_play_date が自然キー)
- RatingCacheEntry: プレイごとに算出したDXレーティング

列挙型の整数値はDBに保存される値そのものであり、既存DBとの互換のため変更しないこと。
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List


class Difficulty(enum.IntEnum):
    BASIC = 0
    ADVANCED = 1
    EXPERT = 2
    MASTER = 3
    REMASTER = 4
    UTAGE = 5


class ComboStatus(enum.IntEnum):
    NO_COMBO = 0
    FULL_COMBO = 1
    FULL_COMBO_PLUS = 2
    ALL_PERFECT = 3
    ALL_PERFECT_PLUS = 4


class SyncStatus(enum.IntEnum):
    NO_SYNC = 0
    FULL_SYNC = 1
    FULL_SYNC_PLUS = 2
    FULL_SYNC_DX = 3
    FULL_SYNC_DX_PLUS = 4


NOTE_TYPES = ("tap", "hold", "slide", "touch", "break")
JUDGEMENT_TIERS = ("critical_perfect", "perfect", "great", "good", "miss")


@dataclass(frozen=True)
class Chart:
    """
    1難易度分の譜面情報。

    internal_level は譜面定数を10倍した整数(13.3 -> 133)で保持する。
    """

    difficulty: Difficulty
    level: int
    internal_level: int
    notes_designer: str
    max_notes: int


@dataclass(frozen=True)
class Song:
    """
    1曲分の曲情報および譜面一覧。

    type は同名曲のスタンダード譜面/でらっくす譜面を区別する。
    """

    song_id: int
    name: str
    artist: str
    type: str
    bpm: int
    category: str
    version: str
    sort: str
    charts: List[Chart] = field(default_factory=list)


@dataclass(frozen=True)
class Play:
    """
    1プレイ分の記録。

    score は達成率を10^4倍した整数(100.5000% -> 1005000)。
    判定数はノーツ種別(tap/hold/slide/touch/break)ごとの内訳と合計を持つ。
    内訳がすべて0の場合は、取得元が内訳を提供していないものとして合計のみを信頼する。
    """

    user_play_date: int
    song_id: int
    difficulty: Difficulty
    score: int

    dx_score: int = 0
    combo_status: ComboStatus = ComboStatus.NO_COMBO
    sync_status: SyncStatus = SyncStatus.NO_SYNC
    is_clear: bool = False
    is_new_record: bool = False
    is_dx_new_record: bool = False
    track: int = 0
    matching_users: List[str] = field(default_factory=list)

    max_combo: int = 0
    total_combo: int = 0
    max_sync: int = 0
    total_sync: int = 0

    fast_count: int = 0
    late_count: int = 0
    before_rating: int = 0
    after_rating: int = 0

    tap_critical_perfect: int = 0
    tap_perfect: int = 0
    tap_great: int = 0
    tap_good: int = 0
    tap_miss: int = 0

    hold_critical_perfect: int = 0
    hold_perfect: int = 0
    hold_great: int = 0
    hold_good: int = 0
    hold_miss: int = 0

    slide_critical_perfect: int = 0
    slide_perfect: int = 0
    slide_great: int = 0
    slide_good: int = 0
    slide_miss: int = 0

    touch_critical_perfect: int = 0
    touch_perfect: int = 0
    touch_great: int = 0
    touch_good: int = 0
    touch_miss: int = 0

    break_critical_perfect: int = 0
    break_perfect: int = 0
    break_great: int = 0
    break_good: int = 0
    break_miss: int = 0

    total_critical_perfect: int = 0
    total_perfect: int = 0
    total_great: int = 0
    total_good: int = 0
    total_miss: int = 0

    def judgement(self, note_type: str, tier: str) -> int:
        """ノーツ種別・判定ごとの件数を返す。"""
        return getattr(self, f"{note_type}_{tier}")

    def total(self, tier: str) -> int:
        """判定ごとの合計件数を返す。"""
        return getattr(self, f"total_{tier}")


@dataclass(frozen=True)
class RatingCacheEntry:
    """プレイ1件分のDXレーティング算出結果。算出時点の譜面定数を保持する。"""

    user_play_date: int
    internal_level: int
    rating: int
    version: str
