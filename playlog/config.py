"""
設定ファイル(settings.yaml)の読み込み処理を提供するモジュール。

settings.yaml からDBファイルパスや更新間隔などを読み込み、
アプリ内で扱いやすい dataclass に変換する。

solips のアクセスコードは秘密情報のため settings.yaml には書かず、
環境変数 PLAYLOG_ACCESS_CODE から読み込む。
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import yaml

ACCESS_CODE_ENV = "PLAYLOG_ACCESS_CODE"
DEFAULT_SOLIPS_BASE_URL = "https://www.solips.app/api/trpc"


@dataclass(frozen=True)
class SolipsConfig:
    """
    solips API 連携設定。

    Attributes:
        base_url: tRPC API のベースURL。
        timeout: HTTPリクエストのタイムアウト秒。
    """

    base_url: str
    timeout: int


@dataclass(frozen=True)
class Settings:
    """
    アプリケーション全体設定。

    Attributes:
        songdb_path: 曲DBのSQLiteファイルパス。
        playdb_path: プレイDBのSQLiteファイルパス。
        update_interval: 更新処理の実行間隔(秒)。
        api_interval: APIリクエスト間の待機時間(秒)。
        solips: solips API 連携設定。
    """

    songdb_path: str
    playdb_path: str
    update_interval: int
    api_interval: float
    solips: SolipsConfig


def load_settings(path: str) -> Settings:
    """
    settings.yaml を読み込み Settings に変換する。

    ファイル内で省略されたキーは既定値を使う。

    Args:
        path: settings.yaml のファイルパス。

    Returns:
        Settingsオブジェクト。

    Raises:
        FileNotFoundError: 設定ファイルが存在しない場合。
        yaml.YAMLError: YAMLのパースに失敗した場合。
        ValueError: update_interval/api_interval が0以下、または数値でない場合。
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    solips_data = data.get("solips") or {}

    settings = Settings(
        songdb_path=str(data.get("songdb_path", "songs.db")),
        playdb_path=str(data.get("playdb_path", "plays.db")),
        update_interval=int(data.get("update_interval", 900)),
        api_interval=float(data.get("api_interval", 3)),
        solips=SolipsConfig(
            base_url=str(solips_data.get("base_url", DEFAULT_SOLIPS_BASE_URL)).rstrip("/"),
            timeout=int(solips_data.get("timeout", 30)),
        ),
    )

    if settings.update_interval <= 0:
        raise ValueError("update interval must be greater than 0")
    if settings.api_interval <= 0:
        raise ValueError("api interval must be greater than 0")

    return settings


def load_access_code() -> str:
    """
    環境変数からアクセスコードを読み込む。

    Raises:
        KeyError: 環境変数が未設定または空の場合。
    """
    code = os.environ.get(ACCESS_CODE_ENV, "").strip()
    if not code:
        raise KeyError(f"missing '{ACCESS_CODE_ENV}' environment variable")
    return code
