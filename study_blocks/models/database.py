"""
Supabase 데이터베이스 연동 모듈
study_blocks 테이블에 대한 조회/저장을 BlockStore 하나로 감쌉니다.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from supabase import create_client, Client

from study_blocks.config import Settings
from study_blocks.errors import StoreError
from study_blocks.models.study_block import StudyBlock

logger = logging.getLogger(__name__)

TABLE_NAME = "study_blocks"


def init_supabase(settings: Settings) -> Client:
    """Supabase 클라이언트 생성 (서버 시작 시 한 번 호출)"""
    client = create_client(settings.supabase_url, settings.supabase_key)
    logger.info("Supabase 클라이언트가 초기화되었습니다.")
    return client


def close_supabase(client: Client):
    """Supabase 클라이언트가 들고 있는 HTTP 세션 정리 (서버 종료 시 호출)"""
    client.postgrest.session.close()
    logger.info("Supabase 연결이 종료되었습니다.")


def to_iso(value: datetime) -> str:
    """datetime을 UTC ISO 형식 문자열로 변환"""
    if value.tzinfo is None:
        raise ValueError("timezone 정보가 없는 datetime은 저장할 수 없습니다.")
    return value.astimezone(timezone.utc).isoformat()


class BlockStore:
    """study_blocks 테이블 래퍼"""

    def __init__(self, client: Client):
        self.client = client

    def _table(self):
        return self.client.table(TABLE_NAME)

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except Exception as e:
            logger.error("Supabase %s 실패: %s", action, e)
            raise StoreError(f"데이터베이스 {action} 실패: {e}") from e

    def insert(self, record: Dict) -> str:
        """블록 저장 후 생성된 id 반환"""
        response = self._execute(self._table().insert(record), "저장")

        if response.data and len(response.data) > 0:
            return str(response.data[0]["id"])
        raise StoreError("블록 저장 실패: 생성된 행이 없습니다.")

    def list_by_owner(self, user_id: str) -> List[StudyBlock]:
        """사용자의 블록 목록 (시작 시간 오름차순)"""
        query = self._table()\
            .select("*")\
            .eq("user_id", user_id)\
            .order("start_time", desc=False)
        response = self._execute(query, "조회")
        return [StudyBlock.model_validate(row) for row in response.data]

    def find_overlapping(self, user_id: str, start: datetime,
                         end: datetime) -> Optional[StudyBlock]:
        """[start, end) 구간과 겹치는 사용자 블록 하나 반환

        기존 블록이 새 블록의 끝 이전에 시작하고 새 블록의 시작 이후에 끝나면 겹침.
        끝점이 맞닿는 경우는 겹침이 아닙니다.
        """
        query = self._table()\
            .select("*")\
            .eq("user_id", user_id)\
            .lt("start_time", to_iso(end))\
            .gt("end_time", to_iso(start))\
            .order("start_time", desc=False)\
            .limit(1)
        response = self._execute(query, "조회")

        if response.data:
            return StudyBlock.model_validate(response.data[0])
        return None

    def delete_owned(self, user_id: str, block_id: str) -> bool:
        """사용자 소유 블록 삭제, 삭제된 행이 있으면 True"""
        query = self._table()\
            .delete()\
            .eq("id", block_id)\
            .eq("user_id", user_id)
        response = self._execute(query, "삭제")
        return bool(response.data)

    def count_all(self) -> int:
        """전체 블록 수"""
        query = self._table().select("id", count="exact").limit(1)
        response = self._execute(query, "조회")
        return response.count or 0

    def find_due(self, now: datetime) -> List[StudyBlock]:
        """알림 발송 대상 블록 조회

        아직 발송되지 않았고, 알림 시간이 지났고, 아직 시작하지 않은 블록만.
        """
        query = self._table()\
            .select("*")\
            .eq("notification_sent", False)\
            .lte("notification_time", to_iso(now))\
            .gt("start_time", to_iso(now))\
            .order("start_time", desc=False)
        response = self._execute(query, "조회")
        return [StudyBlock.model_validate(row) for row in response.data]

    def claim(self, block_id: str, now: datetime, lease: timedelta) -> bool:
        """발송 전에 블록을 선점, 이미 다른 실행이 선점 중이면 False"""
        expired = to_iso(now - lease)
        query = self._table()\
            .update({"notification_claimed_at": to_iso(now)})\
            .eq("id", block_id)\
            .eq("notification_sent", False)\
            .or_(f'notification_claimed_at.is.null,notification_claimed_at.lt."{expired}"')
        response = self._execute(query, "선점")
        return bool(response.data)

    def release_claim(self, block_id: str, claimed_at: datetime):
        """발송 실패 시 선점 해제 (이 실행의 선점일 때만)"""
        query = self._table()\
            .update({"notification_claimed_at": None})\
            .eq("id", block_id)\
            .eq("notification_sent", False)\
            .eq("notification_claimed_at", to_iso(claimed_at))
        self._execute(query, "선점 해제")

    def mark_sent(self, block_id: str, sent_at: datetime):
        """발송 완료 표시 (id 기준)"""
        query = self._table()\
            .update({
                "notification_sent": True,
                "notification_sent_at": to_iso(sent_at),
            })\
            .eq("id", block_id)
        self._execute(query, "발송 표시")

    def ping(self) -> bool:
        """연결 확인"""
        try:
            self._execute(self._table().select("id").limit(1), "연결 확인")
        except StoreError:
            return False
        return True
