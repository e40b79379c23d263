"""曲リストJSON取り込みのテスト。"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from playlog.errors import ValidationError
from playlog.models import Difficulty
from playlog.song_loader import dict_to_song, load_songs, parse_difficulty
from playlog.songdb import get_song


def _write_songs(path: Path, songs: list) -> str:
    path.write_text(json.dumps(songs, ensure_ascii=False), encoding="utf-8")
    return str(path)


SWEET_HOME_ALABAMA = {
    "song_id": 1,
    "name": "Sweet Home Alabama",
    "artist": "Lynyrd Skynyrd",
    "type": "std",
    "bpm": 98.0,
    "category": "POPS＆アニメ",
    "version": "maimai",
    "sort": "100000",
    "charts": [
        {"difficulty": "basic", "level": 6, "internal_level": 6.9,
         "notes_designer": "", "max_notes": 96},
        {"difficulty": "advanced", "level": 8, "internal_level": 8.8,
         "notes_designer": "", "max_notes": 148},
        {"difficulty": "expert", "level": 10, "internal_level": 10.2,
         "notes_designer": "", "max_notes": 160},
    ],
}


@pytest.mark.light
def test_load_songs_scales_internal_level(song_con, tmp_path: Path):
    """譜面定数が10倍の整数として保存されることを確認する。"""
    path = _write_songs(tmp_path / "songs.json", [SWEET_HOME_ALABAMA])

    assert load_songs(song_con, path) == 1

    song = get_song(song_con, 1)
    assert song.bpm == 98
    assert [c.difficulty for c in song.charts] == [
        Difficulty.BASIC, Difficulty.ADVANCED, Difficulty.EXPERT,
    ]
    assert [c.internal_level for c in song.charts] == [69, 88, 102]


@pytest.mark.light
def test_load_songs_twice_is_noop(song_con, tmp_path: Path):
    path = _write_songs(tmp_path / "songs.json", [SWEET_HOME_ALABAMA])

    load_songs(song_con, path)
    before = get_song(song_con, 1)
    load_songs(song_con, path)

    assert get_song(song_con, 1) == before


@pytest.mark.light
def test_unknown_difficulty_is_rejected():
    with pytest.raises(ValidationError):
        parse_difficulty("extreme")

    data = dict(SWEET_HOME_ALABAMA, charts=[{"difficulty": "hard", "level": 1}])
    with pytest.raises(ValidationError):
        dict_to_song(data)


@pytest.mark.light
def test_parse_difficulty_all_values():
    assert [parse_difficulty(v) for v in
            ("basic", "advanced", "expert", "master", "remaster", "utage")] == list(Difficulty)
    assert parse_difficulty("ReMaster") == Difficulty.REMASTER


@pytest.mark.light
def test_song_list_must_be_array(song_con, tmp_path: Path):
    path = tmp_path / "songs.json"
    path.write_text(json.dumps(SWEET_HOME_ALABAMA), encoding="utf-8")

    with pytest.raises(ValidationError):
        load_songs(song_con, str(path))


@pytest.mark.light
def test_internal_level_rounds_half_up():
    """x.x5 の譜面定数は切り上げられることを確認する。"""
    data = dict(SWEET_HOME_ALABAMA, charts=[
        {"difficulty": "basic", "level": 1, "internal_level": 1.25},
        {"difficulty": "advanced", "level": 0, "internal_level": 0.25},
    ])

    assert [c.internal_level for c in dict_to_song(data).charts] == [13, 3]
