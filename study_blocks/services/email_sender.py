"""
공부 시작 알림 메일 렌더링 및 SMTP 발송
"""

import html
import logging
import smtplib
import ssl
from dataclasses import dataclass
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Optional
from zoneinfo import ZoneInfo

from study_blocks.config import Settings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30

REMINDER_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Study Time Reminder</title>
  </head>
  <body style="font-family: Arial, sans-serif; margin: 0; padding: 0; background-color: #f5f5f5;">
    <div style="max-width: 600px; margin: 20px auto 0; background: white; border-radius: 12px; overflow: hidden;">
      <div style="background: linear-gradient(135deg, #3B82F6, #8B5CF6); padding: 40px 30px; text-align: center;">
        <h1 style="color: white; margin: 0; font-size: 28px;">&#9200; Study Time Alert</h1>
        <p style="color: #e0e7ff; margin: 10px 0 0 0; font-size: 16px;">Your focus session is about to begin!</p>
      </div>
      <div style="padding: 30px;">
        <h2 style="color: #1f2937; margin: 0 0 20px 0; font-size: 22px;">&#128218; {subject}</h2>
        <div style="background: #f0f9ff; padding: 20px; border-radius: 10px; border-left: 4px solid #3B82F6;">
          <p style="color: #1e40af; margin: 0; font-size: 18px; font-weight: bold;">Starts in 10 minutes</p>
          <p style="color: #64748b; margin: 10px 0 0 0; font-size: 16px;"><strong>Time:</strong> {formatted_time}</p>
        </div>
        <div style="background: #f0fdf4; padding: 20px; border-radius: 10px; border: 1px solid #bbf7d0; margin: 20px 0;">
          <h3 style="color: #166534; margin: 0 0 15px 0; font-size: 16px;">Quick prep checklist:</h3>
          <ul style="color: #166534; margin: 0; padding-left: 20px; line-height: 1.6;">
            <li>Find a quiet, comfortable space</li>
            <li>Gather all your study materials</li>
            <li>Keep water and snacks nearby</li>
            <li>Turn off distracting notifications</li>
          </ul>
        </div>
        {dashboard_link}
      </div>
      <div style="background: #f8fafc; padding: 20px; text-align: center; border-top: 1px solid #e5e7eb;">
        <p style="color: #9ca3af; margin: 0; font-size: 14px;">
          You're receiving this because you scheduled a study block.<br>
          <strong>Study Blocks</strong>
        </p>
      </div>
    </div>
  </body>
</html>
"""

DASHBOARD_LINK_TEMPLATE = (
    '<p style="text-align: center; margin: 30px 0;">'
    '<a href="{url}" style="color: #3B82F6; font-size: 16px;">View your study blocks</a></p>'
)

REMINDER_TEXT = """\
Study Time Alert

{subject}
Starts in 10 minutes
Time: {formatted_time}

You're receiving this because you scheduled a study block.
"""


@dataclass
class SendResult:
    """메일 발송 결과"""
    ok: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


def format_start_time(start_time: datetime, tz: ZoneInfo) -> str:
    """예: 'October 19, 2026 at 03:30 PM KST'"""
    local = start_time.astimezone(tz)
    return local.strftime("%B %d, %Y at %I:%M %p %Z").strip()


def render_reminder(subject: str, start_time: datetime, tz: ZoneInfo, dashboard_url: str = ""):
    """(html, text) 본문 생성, subject 는 HTML 이스케이프"""
    formatted_time = format_start_time(start_time, tz)
    dashboard_link = ""
    if dashboard_url:
        dashboard_link = DASHBOARD_LINK_TEMPLATE.format(url=html.escape(dashboard_url, quote=True))
    html_body = REMINDER_TEMPLATE.format(
        subject=html.escape(subject, quote=True),
        formatted_time=html.escape(formatted_time),
        dashboard_link=dashboard_link,
    )
    text_body = REMINDER_TEXT.format(subject=subject, formatted_time=formatted_time)
    return html_body, text_body


class EmailSender:
    """SMTP 알림 메일 발송기 (상태 없음)"""

    def __init__(self, settings: Settings, tz: ZoneInfo):
        self.settings = settings
        self.tz = tz

    def _connect(self) -> smtplib.SMTP:
        host = self.settings.smtp_host
        port = self.settings.smtp_port
        context = ssl.create_default_context()
        if self.settings.smtp_use_ssl:
            return smtplib.SMTP_SSL(host, port, timeout=SMTP_TIMEOUT_SECONDS, context=context)
        server = smtplib.SMTP(host, port, timeout=SMTP_TIMEOUT_SECONDS)
        server.starttls(context=context)
        return server

    def build_message(self, recipient: str, subject: str, start_time: datetime) -> MIMEMultipart:
        html_body, text_body = render_reminder(subject, start_time, self.tz,
                                                dashboard_url=self.settings.public_base_url)
        from_address = self.settings.smtp_from_address or ""

        message = MIMEMultipart("alternative")
        message["From"] = formataddr((self.settings.smtp_from_name, from_address))
        message["To"] = recipient
        message["Subject"] = f"\U0001F4DA {subject} - Study session starts in 10 minutes!"
        domain = from_address.split("@")[-1] if "@" in from_address else None
        message["Message-ID"] = make_msgid(domain=domain)
        message.attach(MIMEText(text_body, "plain", "utf-8"))
        message.attach(MIMEText(html_body, "html", "utf-8"))
        return message

    def send(self, recipient: str, subject: str, start_time: datetime) -> SendResult:
        """알림 메일 발송, 실패해도 예외를 던지지 않고 SendResult 로 반환"""
        settings = self.settings
        if not all([settings.smtp_host, settings.smtp_user,
                    settings.smtp_password, settings.smtp_from_address]):
            logger.error("SMTP 설정이 완전하지 않아 메일을 보낼 수 없습니다.")
            return SendResult(ok=False, error="SMTP configuration is incomplete")

        try:
            message = self.build_message(recipient, subject, start_time)
            with self._connect() as server:
                server.login(settings.smtp_user, settings.smtp_password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            logger.error("메일 발송 실패 (%s): %s", recipient, e)
            return SendResult(ok=False, error=f"Failed to send email: {e}")

        message_id = message["Message-ID"]
        logger.info("메일 발송 완료: %s %s", recipient, message_id)
        return SendResult(ok=True, message_id=message_id)
