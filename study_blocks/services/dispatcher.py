"""
알림 디스패처
외부 스케줄러(cron 등)가 주기적으로 호출하면 발송 대상 블록을 찾아 메일을 보냅니다.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from study_blocks.models.database import BlockStore
from study_blocks.models.study_block import DispatchSummary, NotificationResult, StudyBlock
from study_blocks.services.block_service import utc_now
from study_blocks.services.email_sender import EmailSender

logger = logging.getLogger(__name__)

# 선점 후 이 시간이 지나도 발송 표시가 없으면 다른 실행이 다시 선점할 수 있음
CLAIM_LEASE = timedelta(minutes=5)


class NotificationDispatcher:
    """발송 대상 조회 → 선점 → 메일 발송 → 발송 표시"""

    def __init__(self, store: BlockStore, sender: EmailSender,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.sender = sender
        self.clock = clock

    def run(self, now: Optional[datetime] = None) -> DispatchSummary:
        """디스패처 1회 실행

        블록 하나의 실패가 전체 실행을 중단시키지 않습니다.
        """
        if now is None:
            now = self.clock()
        logger.info("알림 확인 시작: %s", now.isoformat())

        total_blocks = self.store.count_all()
        due_blocks = self.store.find_due(now)
        logger.info("전체 블록 %d개 중 발송 대상 %d개", total_blocks, len(due_blocks))

        results = []
        for block in due_blocks:
            try:
                result = self._process(block, now)
            except Exception as e:
                logger.exception("블록 %s 처리 중 오류", block.id)
                result = NotificationResult(id=block.id, status="error", email=block.user_email,
                                            subject=block.subject, error=str(e))
            results.append(result)

        summary = DispatchSummary(
            timestamp=now,
            total_blocks=total_blocks,
            processed=len(due_blocks),
            results=results,
            sent=sum(1 for r in results if r.status == "sent"),
            failed=sum(1 for r in results if r.status == "failed"),
            errors=sum(1 for r in results if r.status == "error"),
            skipped=sum(1 for r in results if r.status == "skipped"),
        )
        logger.info("알림 확인 완료: 발송 %d, 실패 %d, 오류 %d, 건너뜀 %d",
                    summary.sent, summary.failed, summary.errors, summary.skipped)
        return summary

    def _process(self, block: StudyBlock, now: datetime) -> NotificationResult:
        if not self.store.claim(block.id, now, CLAIM_LEASE):
            logger.info("블록 %s 은(는) 다른 실행이 처리 중입니다.", block.id)
            return NotificationResult(id=block.id, status="skipped",
                                      email=block.user_email, subject=block.subject)

        try:
            send_result = self.sender.send(block.user_email, block.subject, block.start_time)
        except Exception:
            self.store.release_claim(block.id, now)
            raise

        if not send_result.ok:
            self.store.release_claim(block.id, now)
            logger.warning("알림 발송 실패: %s (%s)", block.subject, send_result.error)
            return NotificationResult(id=block.id, status="failed", email=block.user_email,
                                      subject=block.subject, error=send_result.error)

        self.store.mark_sent(block.id, now)
        logger.info("알림 발송 완료: %s → %s", block.subject, block.user_email)
        return NotificationResult(id=block.id, status="sent", email=block.user_email,
                                  subject=block.subject, message_id=send_result.message_id)
