from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from playlog.db import open_playdb, open_songdb
from playlog.models import Chart, ComboStatus, Difficulty, Play, Song, SyncStatus


@pytest.fixture
def song_con(tmp_path: Path):
    con = open_songdb(str(tmp_path / "songs.db"))
    try:
        yield con
    finally:
        con.close()


@pytest.fixture
def play_con(tmp_path: Path):
    con = open_playdb(str(tmp_path / "plays.db"))
    try:
        yield con
    finally:
        con.close()


@pytest.fixture
def sample_song() -> Song:
    return Song(
        song_id=11441,
        name="終焉逃避行",
        artist="SLAVE.V-V-R",
        type="dx",
        bpm=200,
        category="maimai",
        version="FESTiVAL PLUS",
        sort="511000",
        charts=[
            Chart(Difficulty.BASIC, 5, 50, "-", 300),
            Chart(Difficulty.ADVANCED, 8, 84, "-", 450),
            Chart(Difficulty.EXPERT, 11, 115, "jamallione", 620),
            Chart(Difficulty.MASTER, 13, 133, "jamallione", 783),
        ],
    )


@pytest.fixture
def sample_play() -> Play:
    return Play(
        user_play_date=1743108003,
        song_id=11441,
        difficulty=Difficulty.MASTER,
        score=971017,
        dx_score=1841,
        combo_status=ComboStatus.NO_COMBO,
        sync_status=SyncStatus.NO_SYNC,
        is_clear=True,
        is_new_record=True,
        is_dx_new_record=True,
        track=3,
        matching_users=["ＳＵＰＡＩＤＯＬ"],
        max_combo=385,
        total_combo=783,
        max_sync=559,
        total_sync=1566,
        fast_count=53,
        late_count=66,
        before_rating=13085,
        after_rating=13085,
        tap_critical_perfect=222,
        tap_perfect=239,
        tap_great=67,
        tap_good=8,
        tap_miss=3,
        hold_critical_perfect=44,
        hold_perfect=27,
        hold_great=6,
        hold_good=1,
        hold_miss=1,
        slide_critical_perfect=93,
        slide_perfect=0,
        slide_great=3,
        slide_good=3,
        slide_miss=0,
        touch_critical_perfect=19,
        touch_perfect=0,
        touch_great=0,
        touch_good=0,
        touch_miss=1,
        break_critical_perfect=15,
        break_perfect=24,
        break_great=6,
        break_good=1,
        break_miss=0,
        total_critical_perfect=393,
        total_perfect=290,
        total_great=82,
        total_good=13,
        total_miss=5,
    )


@pytest.fixture
def sample_detail() -> dict:
    """sample_play に対応する solips のプレイ詳細。"""
    return {
        "info": {
            "musicId": 11441,
            "level": "MAIMAI_LEVEL_MASTER",
            "achievement": 971017,
            "deluxscore": 1841,
            "scoreRank": "MAIMAI_SCORE_RANK_S",
            "comboStatus": "MAIMAI_COMBO_STATUS_NONE",
            "syncStatus": "MAIMAI_SYNC_STATUS_NONE",
            "isClear": True,
            "isAchieveNewRecord": True,
            "isDeluxscoreNewRecord": True,
            "track": 3,
            "userPlayDate": "2025-03-27T20:40:03Z",
        },
        "detail": {
            "judgeTap": {"tapCriticalPerfect": 222, "tapPerfect": 239, "tapGreat": 67,
                         "tapGood": 8, "tapMiss": 3},
            "judgeHold": {"holdCriticalPerfect": 44, "holdPerfect": 27, "holdGreat": 6,
                          "holdGood": 1, "holdMiss": 1},
            "judgeSlide": {"slideCriticalPerfect": 93, "slidePerfect": 0, "slideGreat": 3,
                           "slideGood": 3, "slideMiss": 0},
            "judgeTouch": {"touchCriticalPerfect": 19, "touchPerfect": 0, "touchGreat": 0,
                           "touchGood": 0, "touchMiss": 1},
            "judgeBreak": {"breakCriticalPerfect": 15, "breakPerfect": 24, "breakGreat": 6,
                           "breakGood": 1, "breakMiss": 0},
            "maxCombo": 385,
            "totalCombo": 783,
            "maxSync": 559,
            "totalSync": 1566,
            "fastCount": 53,
            "lateCount": 66,
            "beforeRating": 13085,
            "afterRating": 13085,
        },
        "matchingUsers": [{"userName": "ＳＵＰＡＩＤＯＬ"}],
    }
