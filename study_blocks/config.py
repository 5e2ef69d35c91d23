"""
환경 설정 모듈
.env 파일과 환경 변수에서 서버 설정을 읽어옵니다.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# .env 파일 로드 (여러 위치에서 검색)
_current_file = Path(__file__).resolve()
_possible_paths = [
    _current_file.parent.parent / ".env",  # 프로젝트 루트
    _current_file.parent / ".env",         # study_blocks/.env
    Path.cwd() / ".env",                   # 현재 작업 디렉토리
]

for _env_path in _possible_paths:
    if _env_path.exists():
        load_dotenv(_env_path)
        break
else:
    load_dotenv()  # 기본 동작


@dataclass(frozen=True)
class Settings:
    """서버 설정 값"""
    supabase_url: str
    supabase_key: str
    cron_secret: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from_address: Optional[str] = None
    smtp_from_name: str = "Study Blocks"
    smtp_use_ssl: bool = True
    timezone: str = "UTC"
    public_base_url: str = "http://localhost:8000"
    notifier_interval_seconds: int = 60
    log_level: str = "INFO"


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} 환경 변수는 정수여야 합니다: {value!r}")


def load_settings() -> Settings:
    """환경 변수에서 Settings 생성"""
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url or not supabase_key:
        raise ValueError(
            "SUPABASE_URL과 SUPABASE_KEY 환경 변수를 설정해주세요.\n"
            "Supabase 프로젝트 설정에서 URL과 service role key를 확인할 수 있습니다."
        )

    smtp_user = os.getenv("SMTP_USER")

    return Settings(
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        cron_secret=os.getenv("CRON_SECRET") or None,
        smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
        smtp_port=_get_int("SMTP_PORT", 465),
        smtp_user=smtp_user,
        smtp_password=os.getenv("SMTP_PASSWORD"),
        # 발신 주소를 따로 지정하지 않으면 SMTP 계정을 그대로 사용
        smtp_from_address=os.getenv("SMTP_FROM_ADDRESS") or smtp_user,
        smtp_from_name=os.getenv("SMTP_FROM_NAME", "Study Blocks"),
        smtp_use_ssl=_get_bool("SMTP_USE_SSL", True),
        timezone=os.getenv("APP_TIMEZONE", "UTC"),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"),
        notifier_interval_seconds=_get_int("NOTIFIER_INTERVAL_SECONDS", 60),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


def configure_logging(level: str = "INFO"):
    """로깅 기본 설정 (프로세스 시작 시 한 번 호출)"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
