"""
알림 디스패처 실행 스크립트
HTTP cron 없이 디스패처를 직접 돌릴 때 사용합니다.

사용법:
    python run_notifier.py          # NOTIFIER_INTERVAL_SECONDS 마다 반복 (기본 60초)
    python run_notifier.py --once   # 한 번만 실행 (시스템 cron 용)

    # Linux cron (매분)
    * * * * * /path/to/venv/bin/python /path/to/run_notifier.py --once

같은 저장소에 대해 여러 프로세스를 동시에 띄우지 마세요.
"""

import argparse
import logging
import time
from zoneinfo import ZoneInfo

from study_blocks.config import configure_logging, load_settings
from study_blocks.models.database import BlockStore, close_supabase, init_supabase
from study_blocks.services.dispatcher import NotificationDispatcher
from study_blocks.services.email_sender import EmailSender

logger = logging.getLogger("run_notifier")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Study block reminder dispatcher")
    parser.add_argument("--once", action="store_true", help="한 번만 실행하고 종료")
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(settings.log_level)

    client = init_supabase(settings)
    tz = ZoneInfo(settings.timezone)
    dispatcher = NotificationDispatcher(BlockStore(client), EmailSender(settings, tz))

    try:
        while True:
            try:
                summary = dispatcher.run()
                logger.info("processed=%d sent=%d failed=%d errors=%d skipped=%d",
                            summary.processed, summary.sent, summary.failed, summary.errors,
                            summary.skipped)
            except Exception:
                # 다음 주기에 다시 시도
                logger.exception("디스패처 실행 실패")
            if args.once:
                break
            time.sleep(settings.notifier_interval_seconds)
    except KeyboardInterrupt:
        logger.info("중지 요청을 받았습니다.")
    finally:
        close_supabase(client)


if __name__ == "__main__":
    main()
