"""ランク・DXレーティング算出のテスト。"""

from __future__ import annotations

import pytest

from playlog.rating import score_to_dx_rating, score_to_multiplier, score_to_rank


@pytest.mark.light
@pytest.mark.parametrize(
    ("score", "internal_level", "expected"),
    [
        (1000470, 133, 287),
        (1001379, 126, 272),
        (992970, 131, 270),
        (1003532, 133, 288),
    ],
)
def test_score_to_dx_rating_known_values(score, internal_level, expected):
    assert score_to_dx_rating(score, internal_level) == expected


@pytest.mark.light
def test_score_to_dx_rating_truncates():
    """丸めではなく切り捨てであることを確認する。"""
    # 22.4 * 1.005 * 14.0 = 315.168
    assert score_to_dx_rating(1005000, 140) == 315
    # 21.6 * 1.0 * 13.7 = 295.92
    assert score_to_dx_rating(1000000, 137) == 295


@pytest.mark.light
def test_score_to_multiplier_boundaries():
    """境界直前の係数が一段低いことを確認する。"""
    assert score_to_multiplier(1010000) == 22.4
    assert score_to_multiplier(1005000) == 22.4
    assert score_to_multiplier(1004999) == 22.2
    assert score_to_multiplier(1000000) == 21.6
    assert score_to_multiplier(999999) == 21.4
    assert score_to_multiplier(970000) == 20.0
    assert score_to_multiplier(969999) == 17.6
    assert score_to_multiplier(800000) == 13.6
    assert score_to_multiplier(799999) == 12.8
    assert score_to_multiplier(100000) == 1.6
    assert score_to_multiplier(99999) == 0.0
    assert score_to_dx_rating(99999, 150) == 0


@pytest.mark.light
@pytest.mark.parametrize(
    ("score", "rank"),
    [
        (1005000, "SSS+"),
        (1004999, "SSS"),
        (995000, "SS+"),
        (990000, "SS"),
        (980000, "S+"),
        (971017, "S"),
        (940000, "AAA"),
        (900000, "AA"),
        (800000, "A"),
        (750000, "BBB"),
        (700000, "BB"),
        (600000, "B"),
        (500000, "C"),
        (499999, "D"),
        (0, "D"),
    ],
)
def test_score_to_rank(score, rank):
    assert score_to_rank(score) == rank
