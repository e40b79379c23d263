"""
曲リストJSONを曲DBへ取り込むモジュール。

入力は曲オブジェクトの配列。譜面定数は小数(13.3)で与えられるため、
10倍して四捨五入(0.5 は切り上げ)した整数として保存する。
"""

from __future__ import annotations

import json
import logging
import math
import sqlite3
from typing import Any, List

from playlog.errors import ValidationError
from playlog.models import Chart, Difficulty, Song
from playlog.songdb import add_song

logger = logging.getLogger(__name__)

_DIFFICULTY_MAP = {
    "basic": Difficulty.BASIC,
    "advanced": Difficulty.ADVANCED,
    "expert": Difficulty.EXPERT,
    "master": Difficulty.MASTER,
    "remaster": Difficulty.REMASTER,
    "utage": Difficulty.UTAGE,
}


def parse_difficulty(value: str) -> Difficulty:
    """
    難易度文字列(basic/advanced/...)を Difficulty に変換する。

    Raises:
        ValidationError: 未知の難易度の場合。
    """
    try:
        return _DIFFICULTY_MAP[str(value).strip().lower()]
    except KeyError:
        raise ValidationError(f"unexpected chart difficulty: {value}") from None


def dict_to_song(data: dict[str, Any]) -> Song:
    """
    曲リストJSONの1要素を Song に変換する。

    Raises:
        KeyError: 必須キー(song_id)が存在しない場合。
        ValidationError: 未知の難易度を含む場合。
    """
    charts: List[Chart] = []
    for chart in data.get("charts") or []:
        charts.append(Chart(
            difficulty=parse_difficulty(chart["difficulty"]),
            level=int(chart.get("level", 0)),
            internal_level=math.floor(float(chart.get("internal_level", 0)) * 10 + 0.5),
            notes_designer=str(chart.get("notes_designer") or ""),
            max_notes=int(chart.get("max_notes", 0)),
        ))

    return Song(
        song_id=int(data["song_id"]),
        name=str(data.get("name", "")),
        artist=str(data.get("artist", "")),
        type=str(data.get("type", "")),
        bpm=int(data.get("bpm", 0)),
        category=str(data.get("category", "")),
        version=str(data.get("version", "")),
        sort=str(data.get("sort", "")),
        charts=charts,
    )


def load_songs(con: sqlite3.Connection, path: str) -> int:
    """
    曲リストJSONファイルを読み込み、曲DBへ登録する。

    既に登録済みの曲・譜面はスキップされる。

    Args:
        con: 曲DBの接続。
        path: 曲リストJSONのファイルパス。

    Returns:
        処理した曲数。

    Raises:
        ValidationError: JSONの形式が不正、または未知の難易度を含む場合。
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValidationError(f"song list must be a JSON array: {path}")

    for item in data:
        add_song(con, dict_to_song(item))

    logger.info("loaded %d songs from %s", len(data), path)
    return len(data)
