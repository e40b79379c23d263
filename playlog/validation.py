"""
プレイ記録の検証処理。

判定数(CRITICAL PERFECT/PERFECT/GREAT/GOOD/MISS)ごとに、
ノーツ種別の内訳合計と total 値が一致することを確認する。
"""

from __future__ import annotations

from playlog.errors import JudgementMismatchError
from playlog.models import JUDGEMENT_TIERS, NOTE_TYPES, Play


def validate_play(play: Play) -> None:
    """
    プレイ記録の判定数を検証する。

    内訳がすべて0の判定は、取得元が内訳を持たないものとして total をそのまま信頼する。
    最初に見つかった不一致のみを報告する。

    Args:
        play: 検証対象のプレイ。

    Raises:
        JudgementMismatchError: 内訳合計が total と一致しない場合。
    """
    for tier in JUDGEMENT_TIERS:
        actual = sum(play.judgement(note_type, tier) for note_type in NOTE_TYPES)
        if actual != 0 and actual != play.total(tier):
            raise JudgementMismatchError(
                play.user_play_date, tier, play.total(tier), actual
            )
