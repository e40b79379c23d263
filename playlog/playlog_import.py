"""
プレイ詳細JSON(maimai playlog detail)をプレイDBへ取り込むモジュール。

solips API のプレイ詳細、およびそれを保存したJSONファイルの両方で使う。

想定仕様:
- info にプレイ日時・曲ID・難易度・スコア等、detail にノーツ種別ごとの判定数がある
- キー名の大文字小文字は区別しない(musicId / MusicId のどちらも可)
- 判定ごとの total は内訳の合計として算出する
- userPlayDate は RFC 3339 形式の日時文字列で、Unix秒へ変換して自然キーとする
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import IO, Any

from playlog.errors import ValidationError
from playlog.models import (
    JUDGEMENT_TIERS,
    NOTE_TYPES,
    ComboStatus,
    Difficulty,
    Play,
    SyncStatus,
)
from playlog.playdb import add_play
from playlog.songdb import resolve_chart

logger = logging.getLogger(__name__)

_LEVEL_MAP = {
    "MAIMAI_LEVEL_BASIC": Difficulty.BASIC,
    "MAIMAI_LEVEL_ADVANCED": Difficulty.ADVANCED,
    "MAIMAI_LEVEL_EXPERT": Difficulty.EXPERT,
    "MAIMAI_LEVEL_MASTER": Difficulty.MASTER,
    "MAIMAI_LEVEL_REMASTER": Difficulty.REMASTER,
    "MAIMAI_LEVEL_UTAGE": Difficulty.UTAGE,
}

_COMBO_STATUS_MAP = {
    "MAIMAI_COMBO_STATUS_NONE": ComboStatus.NO_COMBO,
    "MAIMAI_COMBO_STATUS_FULL_COMBO": ComboStatus.FULL_COMBO,
    "MAIMAI_COMBO_STATUS_FULL_COMBO_PLUS": ComboStatus.FULL_COMBO_PLUS,
    "MAIMAI_COMBO_STATUS_ALL_PERFECT": ComboStatus.ALL_PERFECT,
    "MAIMAI_COMBO_STATUS_ALL_PERFECT_PLUS": ComboStatus.ALL_PERFECT_PLUS,
}

_SYNC_STATUS_MAP = {
    "MAIMAI_SYNC_STATUS_NONE": SyncStatus.NO_SYNC,
    "MAIMAI_SYNC_STATUS_FULL_SYNC": SyncStatus.FULL_SYNC,
    "MAIMAI_SYNC_STATUS_FULL_SYNC_PLUS": SyncStatus.FULL_SYNC_PLUS,
    "MAIMAI_SYNC_STATUS_FULL_SYNC_DX": SyncStatus.FULL_SYNC_DX,
    "MAIMAI_SYNC_STATUS_FULL_SYNC_DX_PLUS": SyncStatus.FULL_SYNC_DX_PLUS,
}


def _field(data: Any, name: str, default: Any = None) -> Any:
    """dict から name を大文字小文字を区別せずに取り出す。"""
    if not isinstance(data, dict):
        return default
    if name in data:
        return data[name]
    lowered = name.lower()
    for key, value in data.items():
        if str(key).lower() == lowered:
            return value
    return default


def _camel(snake: str) -> str:
    head, *rest = snake.split("_")
    return head + "".join(part.capitalize() for part in rest)


def level_to_difficulty(level: str) -> Difficulty:
    """
    MAIMAI_LEVEL_* 文字列を Difficulty に変換する。

    Raises:
        ValidationError: 未知の値の場合。
    """
    try:
        return _LEVEL_MAP[level]
    except KeyError:
        raise ValidationError(f"invalid level: {level}") from None


def parse_play_date(value: str) -> int:
    """
    RFC 3339 形式の日時文字列を Unix秒に変換する。

    Raises:
        ValidationError: 空文字、解釈できない形式、またはUTCオフセットがない場合。
    """
    if not value:
        raise ValidationError("userPlayDate not found")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError(f"invalid userPlayDate: {value}") from e
    if parsed.tzinfo is None:
        raise ValidationError(f"userPlayDate has no UTC offset: {value}")
    return int(parsed.timestamp())


def detail_to_play(detail: dict[str, Any]) -> Play:
    """
    プレイ詳細1件を Play に変換する。

    Args:
        detail: プレイ詳細(info/detail/matchingUsers を持つ dict)。

    Returns:
        Play。判定ごとの total は内訳の合計。

    Raises:
        ValidationError: 難易度・コンボ/シンク状態が未知の値、または日時が不正な場合。
    """
    info = _field(detail, "info", {})
    judge = _field(detail, "detail", {})

    combo = _field(info, "comboStatus", "")
    if combo not in _COMBO_STATUS_MAP:
        raise ValidationError(f"invalid combo status: {combo}")
    sync = _field(info, "syncStatus", "")
    if sync not in _SYNC_STATUS_MAP:
        raise ValidationError(f"invalid sync status: {sync}")

    counts: dict[str, int] = {}
    for note_type in NOTE_TYPES:
        judge_note = _field(judge, f"judge{note_type.capitalize()}", {})
        for tier in JUDGEMENT_TIERS:
            name = f"{note_type}_{tier}"
            counts[name] = int(_field(judge_note, _camel(name), 0) or 0)
    for tier in JUDGEMENT_TIERS:
        counts[f"total_{tier}"] = sum(counts[f"{t}_{tier}"] for t in NOTE_TYPES)

    matching_users = [
        str(_field(user, "userName", ""))
        for user in _field(detail, "matchingUsers", None) or []
    ]

    return Play(
        user_play_date=parse_play_date(_field(info, "userPlayDate", "")),
        song_id=int(_field(info, "musicId", 0)),
        difficulty=level_to_difficulty(_field(info, "level", "")),
        score=int(_field(info, "achievement", 0)),
        dx_score=int(_field(info, "deluxscore", 0)),
        combo_status=_COMBO_STATUS_MAP[combo],
        sync_status=_SYNC_STATUS_MAP[sync],
        is_clear=bool(_field(info, "isClear", False)),
        is_new_record=bool(_field(info, "isAchieveNewRecord", False)),
        is_dx_new_record=bool(_field(info, "isDeluxscoreNewRecord", False)),
        track=int(_field(info, "track", 0)),
        matching_users=matching_users,
        max_combo=int(_field(judge, "maxCombo", 0)),
        total_combo=int(_field(judge, "totalCombo", 0)),
        max_sync=int(_field(judge, "maxSync", 0)),
        total_sync=int(_field(judge, "totalSync", 0)),
        fast_count=int(_field(judge, "fastCount", 0)),
        late_count=int(_field(judge, "lateCount", 0)),
        before_rating=int(_field(judge, "beforeRating", 0)),
        after_rating=int(_field(judge, "afterRating", 0)),
        **counts,
    )


def validate_playlog_detail(song_con: sqlite3.Connection, detail: dict[str, Any]) -> None:
    """
    プレイ詳細が曲DBの内容と矛盾しないことを確認する。

    - userPlayDate が存在する
    - 参照する曲・難易度の譜面が曲DBに存在する
    - totalCombo が譜面の max_notes と一致する(どちらかが0なら確認しない)

    Args:
        song_con: 曲DBの接続。
        detail: プレイ詳細。

    Raises:
        ValidationError: 日時がない、または totalCombo が譜面と一致しない場合。
        ChartNotFoundError: 曲または難易度の譜面が曲DBに存在しない場合。
    """
    info = _field(detail, "info", {})
    if not _field(info, "userPlayDate", ""):
        raise ValidationError("error validating playlog detail, userPlayDate not found")

    song_id = int(_field(info, "musicId", 0))
    _, chart = resolve_chart(song_con, song_id, level_to_difficulty(_field(info, "level", "")))

    total_combo = int(_field(_field(detail, "detail", {}), "totalCombo", 0))
    if total_combo == 0 or chart.max_notes == 0:
        return
    if chart.max_notes != total_combo:
        raise ValidationError(
            f"error validating playlog detail for song {song_id}: "
            f"totalCombo {total_combo} != max_notes {chart.max_notes}"
        )


def import_playlog_json(play_con: sqlite3.Connection, fp: IO[str]) -> int:
    """
    {"playlogDetail": [...]} 形式のJSONを読み込み、プレイDBへ登録する。

    登録済みのプレイはスキップされる。途中で不正なプレイがあればそこで中断する。

    Args:
        play_con: プレイDBの接続。
        fp: JSONファイルオブジェクト。

    Returns:
        処理したプレイ件数。

    Raises:
        ValidationError: JSONの形式またはプレイ内容が不正な場合。
    """
    try:
        data = json.load(fp)
    except json.JSONDecodeError as e:
        raise ValidationError(f"invalid playlog json: {e}") from e

    details = _field(data, "playlogDetail", None)
    if not isinstance(details, list):
        raise ValidationError("playlogDetail array not found")

    for detail in details:
        play = detail_to_play(detail)
        add_play(play_con, play)
        logger.debug("play %d: imported", play.user_play_date)

    logger.info("imported %d plays", len(details))
    return len(details)
