"""
スコアからランク・DXレーティングを算出する純粋関数群。

score は達成率を10^4倍した整数(100.5000% -> 1005000)、
internal_level は譜面定数を10倍した整数(13.3 -> 133)として受け取る。
"""

from __future__ import annotations

import math

# (下限スコア, ランク) 降順
_RANK_TABLE = (
    (1005000, "SSS+"),
    (1000000, "SSS"),
    (995000, "SS+"),
    (990000, "SS"),
    (980000, "S+"),
    (970000, "S"),
    (940000, "AAA"),
    (900000, "AA"),
    (800000, "A"),
    (750000, "BBB"),
    (700000, "BB"),
    (600000, "B"),
    (500000, "C"),
)

# (下限スコア, 係数) 降順
# 各ランク境界の直前(例: 100.4999%)は係数が一段低い値になる
_MULTIPLIER_TABLE = (
    (1005000, 22.4),
    (1004999, 22.2),
    (1000000, 21.6),
    (999999, 21.4),
    (995000, 21.1),
    (990000, 20.8),
    (989999, 20.6),
    (980000, 20.3),
    (970000, 20.0),
    (969999, 17.6),
    (940000, 16.8),
    (900000, 15.2),
    (800000, 13.6),
    (799999, 12.8),
    (750000, 12.0),
    (700000, 11.2),
    (600000, 9.6),
    (500000, 8.0),
    (400000, 6.4),
    (300000, 4.8),
    (200000, 3.2),
    (100000, 1.6),
)


def score_to_rank(score: int) -> str:
    """スコアからランク表記(SSS+ ... D)を返す。"""
    for threshold, rank in _RANK_TABLE:
        if score >= threshold:
            return rank
    return "D"


def score_to_multiplier(score: int) -> float:
    """スコアに対応するレーティング係数を返す。10.0000% 未満は 0.0。"""
    for threshold, multiplier in _MULTIPLIER_TABLE:
        if score >= threshold:
            return multiplier
    return 0.0


def score_to_dx_rating(score: int, internal_level: int) -> int:
    """
    スコアと譜面定数から単曲DXレーティングを算出する。

    rating = floor(係数 * 達成率 * 譜面定数)

    Args:
        score: 達成率 * 10^4。
        internal_level: 譜面定数 * 10。

    Returns:
        単曲レーティング(切り捨て)。
    """
    multiplier = score_to_multiplier(score)
    achievement = score / 1_000_000
    level = internal_level / 10
    return int(math.floor(multiplier * achievement * level))
