"""
요청 인증
- 사용자 요청: Supabase Auth 액세스 토큰 (Bearer)
- 내부/cron 요청: CRON_SECRET 공유 비밀 (Bearer)
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, Request
from supabase import Client

from study_blocks.errors import Unauthenticated

logger = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    """인증된 사용자"""
    id: str
    email: str


class SupabaseIdentity:
    """Supabase Auth 로 토큰을 사용자 정보로 변환"""

    def __init__(self, client: Client):
        self.client = client

    def get_user(self, token: str) -> CurrentUser:
        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            logger.info("토큰 확인 실패: %s", e)
            raise Unauthenticated("로그인이 필요합니다.") from e

        user = response.user if response else None
        if not user or not user.email:
            raise Unauthenticated("로그인이 필요합니다.")
        return CurrentUser(id=str(user.id), email=user.email)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(request: Request,
                     authorization: Optional[str] = Header(default=None)) -> CurrentUser:
    """사용자 인증 의존성"""
    token = extract_bearer_token(authorization)
    if not token:
        raise Unauthenticated("인증 토큰이 없습니다.")
    return request.app.state.identity.get_user(token)


def require_cron_secret(request: Request,
                        authorization: Optional[str] = Header(default=None)):
    """CRON_SECRET 확인 의존성

    비밀 값이 설정되어 있지 않으면 모든 요청을 거부합니다.
    """
    secret = request.app.state.settings.cron_secret
    token = extract_bearer_token(authorization)
    if not secret or not token or not hmac.compare_digest(token.encode(), secret.encode()):
        raise Unauthenticated("Unauthorized")
