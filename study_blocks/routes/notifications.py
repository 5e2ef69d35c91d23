"""
알림 관련 API 라우트
cron 호출용 디스패처 실행과 내부 메일 발송 엔드포인트
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from study_blocks.auth import require_cron_secret
from study_blocks.dependencies import get_dispatcher, get_email_sender
from study_blocks.errors import InvalidInput, SendError
from study_blocks.models.study_block import SendNotificationRequest
from study_blocks.services.dispatcher import NotificationDispatcher
from study_blocks.services.email_sender import EmailSender

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_cron_secret)])


@router.get("/check-notifications")
def check_notifications(dispatcher: NotificationDispatcher = Depends(get_dispatcher)):
    """발송 대상 블록을 찾아 알림 메일 전송 (1분마다 cron 으로 호출)"""
    try:
        summary = dispatcher.run()
    except Exception as e:
        logger.exception("알림 확인 실패")
        return JSONResponse(
            status_code=500,
            content={"error": str(e), "timestamp": datetime.now(timezone.utc).isoformat()},
        )
    return summary.model_dump(mode="json", by_alias=True)


@router.post("/send-notification")
def send_notification(
    body: SendNotificationRequest,
    sender: EmailSender = Depends(get_email_sender),
):
    """알림 메일 한 건 발송"""
    if not body.user_email:
        raise InvalidInput("userEmail", "Missing required field: userEmail")
    if not body.subject:
        raise InvalidInput("subject", "Missing required field: subject")
    if body.start_time is None:
        raise InvalidInput("startTime", "Missing required field: startTime")

    start_time = body.start_time
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)

    result = sender.send(body.user_email, body.subject, start_time)
    if not result.ok:
        raise SendError(result.error or "Failed to send email")
    return {"success": True, "messageId": result.message_id, "message": "Email sent successfully"}


@router.get("/test-email")
def test_email(request: Request, sender: EmailSender = Depends(get_email_sender)):
    """설정된 발신 주소로 테스트 알림 메일 발송"""
    recipient = request.app.state.settings.smtp_from_address
    if not recipient:
        raise SendError("SMTP_FROM_ADDRESS 가 설정되지 않았습니다.")

    start_time = datetime.now(timezone.utc) + timedelta(minutes=10)
    result = sender.send(recipient, "Test Mathematics Study Session", start_time)
    if not result.ok:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to send test email", "details": {"error": result.error}},
        )
    return {"message": "Test email sent successfully!", "details": {"messageId": result.message_id}}
