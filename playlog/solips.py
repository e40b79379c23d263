"""
solips API からプレイ履歴を取得し、プレイDBへ反映するモジュール。

solips はアクセスコードでログインした Cookie を使って直近100件のプレイ一覧と
プレイ詳細を返す tRPC API を提供している。

処理方針:
- Cookie は SolipsClient インスタンスが持つ requests.Session に閉じ込める
- プレイ一覧のうちプレイDBに存在しないものだけ詳細を取得して登録する
- requests 由来の例外やレスポンス形式の不一致は ImportSourceError に変換して上位へ伝播する
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from typing import Any, Callable, List, Optional

import requests

from playlog.config import DEFAULT_SOLIPS_BASE_URL
from playlog.errors import ImportSourceError, PlayNotFoundError
from playlog.playdb import add_play, get_play
from playlog.playlog_import import detail_to_play, parse_play_date, validate_playlog_detail

logger = logging.getLogger(__name__)

PLAYLOG_LENGTH = 100

_FAVORITES_INPUT = {"json": None, "meta": {"values": ["undefined"]}}


class SolipsClient:
    """
    solips API クライアント。

    Args:
        access_code: カードのアクセスコード。
        base_url: tRPC API のベースURL。
        timeout: HTTPリクエストのタイムアウト秒。
        session: 利用する requests.Session。省略時は新規作成する。
    """

    def __init__(
        self,
        access_code: str,
        base_url: str = DEFAULT_SOLIPS_BASE_URL,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.access_code = access_code
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._logged_in = False

    def _get_batch(self, procedures: str, batch_input: dict) -> Any:
        """tRPC バッチ呼び出しを行い、先頭の結果の json 部分を返す。"""
        url = f"{self.base_url}/{procedures}"
        params = {"batch": "1", "input": json.dumps(batch_input, separators=(",", ":"))}
        try:
            r = self.session.get(url, params=params, timeout=self.timeout)
            r.raise_for_status()
            body = r.json()
        except requests.RequestException as e:
            raise ImportSourceError(f"HTTP fetch failed: {url} ({e})") from e
        except ValueError as e:
            raise ImportSourceError(f"invalid JSON response: {url} ({e})") from e

        if not isinstance(body, list) or not body:
            raise ImportSourceError(f"expected non-empty JSON array: {url}")
        try:
            return body[0]["result"]["data"]["json"]
        except (KeyError, TypeError) as e:
            raise ImportSourceError(f"unexpected response shape: {url}") from e

    def login(self) -> None:
        """
        アクセスコードでログインし、認証 Cookie をセッションに保存する。

        Raises:
            ImportSourceError: HTTPエラーや通信失敗が発生した場合。
        """
        url = f"{self.base_url}/card.link"
        try:
            r = self.session.post(
                url,
                params={"batch": "1"},
                json={"0": {"json": self.access_code}},
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise ImportSourceError(f"login failed: {url} ({e})") from e
        self._logged_in = True

    def fetch_playlog(self) -> List[dict]:
        """
        直近のプレイ一覧を取得する。

        Returns:
            playlogApiId と info.userPlayDate を持つ dict のリスト。

        Raises:
            ImportSourceError: 取得失敗、件数不一致、重複を検出した場合。
        """
        if not self._logged_in:
            self.login()

        playlog = self._get_batch(
            "maimai.playlog,maimai.favorites",
            {"0": _FAVORITES_INPUT, "1": _FAVORITES_INPUT},
        )
        validate_playlog(playlog)
        return playlog

    def fetch_playlog_detail(self, playlog_api_id: str) -> dict:
        """
        プレイ詳細を取得する。

        Raises:
            ImportSourceError: 取得失敗、またはレスポンスが dict でない場合。
        """
        if not self._logged_in:
            self.login()

        detail = self._get_batch(
            "maimai.playlogDetail,maimai.favorites",
            {"0": {"json": {"playlogId": playlog_api_id}}, "1": _FAVORITES_INPUT},
        )
        if not isinstance(detail, dict):
            raise ImportSourceError(f"unexpected playlog detail: {playlog_api_id}")
        return detail


def validate_playlog(playlog: Any) -> None:
    """
    プレイ一覧が想定どおりであることを確認する。

    - 件数がちょうど PLAYLOG_LENGTH 件
    - playlogApiId / userPlayDate に重複がない

    Raises:
        ImportSourceError: 条件を満たさない場合。
    """
    if not isinstance(playlog, list):
        raise ImportSourceError("playlog must be a list")
    if len(playlog) != PLAYLOG_LENGTH:
        raise ImportSourceError(
            f"len(playlog): expected {PLAYLOG_LENGTH}, got {len(playlog)}"
        )

    seen_ids = set()
    seen_dates = set()
    for entry in playlog:
        api_id = entry.get("playlogApiId")
        play_date = (entry.get("info") or {}).get("userPlayDate")
        if api_id in seen_ids:
            raise ImportSourceError(f"duplicate playlogApiId: {api_id}")
        if play_date in seen_dates:
            raise ImportSourceError(f"duplicate userPlayDate: {play_date}")
        seen_ids.add(api_id)
        seen_dates.add(play_date)


def update(
    play_con: sqlite3.Connection,
    song_con: sqlite3.Connection,
    client: SolipsClient,
    api_interval: float,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    solips から未登録のプレイを取得してプレイDBへ登録する。

    Args:
        play_con: プレイDBの接続。
        song_con: 曲DBの接続。
        client: solips API クライアント。
        api_interval: 詳細取得ごとの待機時間(秒)。
        sleep: 待機に使う関数。

    Returns:
        新たに登録したプレイ件数。

    Raises:
        ImportSourceError: API からの取得に失敗した場合。
        ValidationError: プレイ内容が不正な場合。
        ChartNotFoundError: 曲DBに該当する曲・譜面がない場合。
    """
    added = 0
    for entry in client.fetch_playlog():
        play_date = parse_play_date((entry.get("info") or {}).get("userPlayDate", ""))

        try:
            get_play(play_con, play_date)
        except PlayNotFoundError:
            detail = client.fetch_playlog_detail(entry["playlogApiId"])
            validate_playlog_detail(song_con, detail)
            add_play(play_con, detail_to_play(detail))
            added += 1
            logger.info("play %d: added to db", play_date)
            sleep(api_interval)
        else:
            logger.debug("play %d: already exists in db", play_date)

    return added
