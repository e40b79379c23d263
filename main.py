import logging
import os
import sys
import time
import traceback

from playlog.config import load_access_code, load_settings
from playlog.db import open_playdb, open_songdb
from playlog.playdb import get_count
from playlog.playlog_import import import_playlog_json
from playlog.solips import SolipsClient, update
from playlog.song_loader import load_songs

_LOG_LEVELS = {0: logging.ERROR, 1: logging.INFO, 2: logging.DEBUG}


def setup_logging() -> None:
    """
    PLAYLOG_VERBOSE(0: エラーのみ, 1: info, 2: debug)に応じてログ出力を設定する。
    """
    verbose = int(os.environ.get("PLAYLOG_VERBOSE", "1"))
    logging.basicConfig(
        level=_LOG_LEVELS.get(min(max(verbose, 0), 2)),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_once(settings, song_con, play_con) -> None:
    """
    曲リスト/プレイJSONの取り込み(指定時のみ)と solips からの更新を1回行う。

    DXレーティングは参照時に算出されるため、ここでは算出しない。

    環境変数:
    - PLAYLOG_SONGS_JSON: 曲リストJSON(指定時のみ曲DBへ取り込む)
    - PLAYLOG_IMPORT_JSON: プレイ詳細JSON(指定時のみプレイDBへ取り込む)
    - PLAYLOG_ACCESS_CODE: solips のアクセスコード(未指定なら solips 更新は行わない)
    """
    songs_json = os.environ.get("PLAYLOG_SONGS_JSON")
    if songs_json:
        load_songs(song_con, songs_json)

    import_json = os.environ.get("PLAYLOG_IMPORT_JSON")
    if import_json:
        with open(import_json, "r", encoding="utf-8") as f:
            import_playlog_json(play_con, f)

    if os.environ.get("PLAYLOG_ACCESS_CODE"):
        client = SolipsClient(
            access_code=load_access_code(),
            base_url=settings.solips.base_url,
            timeout=settings.solips.timeout,
        )
        added = update(play_con, song_con, client, settings.api_interval)
        logging.getLogger(__name__).info("solips: %d plays added", added)


def main():
    """
    プレイ履歴DBの更新を行うメイン処理。

    環境変数の要件:
    - PLAYLOG_SETTINGS: settings.yaml のパス(デフォルト: "settings.yaml")
    - PLAYLOG_LOOP: "1" の場合、update_interval 秒ごとに更新を繰り返す
    - その他は run_once を参照
    処理の成功時はSUCCESS、失敗時は例外を発生させる。
    Raises:
        Exception: 処理中に任意のエラーが発生した場合。
    """
    setup_logging()
    try:
        settings = load_settings(os.environ.get("PLAYLOG_SETTINGS", "settings.yaml"))

        song_con = open_songdb(settings.songdb_path)
        play_con = open_playdb(settings.playdb_path)
        try:
            run_once(settings, song_con, play_con)
            while os.environ.get("PLAYLOG_LOOP") == "1":
                time.sleep(settings.update_interval)
                run_once(settings, song_con, play_con)

            print(f"SUCCESS plays={get_count(play_con)}")
        finally:
            play_con.close()
            song_con.close()

    except Exception:
        print(traceback.format_exc(), file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
