"""
공부 블록 데이터 모델
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional, Union


STATUS_UPCOMING = "upcoming"


class StudyBlock(BaseModel):
    """저장된 공부 블록 (study_blocks 테이블의 한 행)"""
    # DB 행은 snake_case 로 읽고, API 응답은 camelCase 로 내보냄
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: str
    user_email: str
    subject: str
    duration: int  # 분 단위
    start_time: datetime
    end_time: datetime
    notification_time: datetime
    notification_sent: bool = False
    notification_sent_at: Optional[datetime] = None
    notification_claimed_at: Optional[datetime] = None
    status: str = STATUS_UPCOMING
    created_at: Optional[datetime] = None

    def to_response(self) -> dict:
        """API 응답용 딕셔너리 (내부 claim 컬럼 제외)"""
        return self.model_dump(mode="json", by_alias=True, exclude={"notification_claimed_at"})


class StudyBlockCreate(BaseModel):
    """블록 생성 요청 모델

    검증은 BlockService에서 하므로 여기서는 값의 형식을 느슨하게 받습니다.
    """
    model_config = ConfigDict(populate_by_name=True)

    subject: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    duration: Optional[Union[int, str]] = None
    custom_duration: Optional[Union[int, str]] = Field(default=None, alias="customDuration")
    use_custom_time: bool = Field(default=False, alias="useCustomTime")


class StudyBlockDelete(BaseModel):
    """블록 삭제 요청 모델"""
    model_config = ConfigDict(populate_by_name=True)

    block_id: Optional[str] = Field(default=None, alias="blockId")


class SendNotificationRequest(BaseModel):
    """알림 메일 단건 발송 요청 모델"""
    model_config = ConfigDict(populate_by_name=True)

    user_email: Optional[str] = Field(default=None, alias="userEmail")
    subject: Optional[str] = None
    start_time: Optional[datetime] = Field(default=None, alias="startTime")


class NotificationResult(BaseModel):
    """디스패처가 블록 하나를 처리한 결과"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    status: str  # sent / failed / error / skipped
    email: Optional[str] = None
    subject: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None


class DispatchSummary(BaseModel):
    """디스패처 실행 요약"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    timestamp: datetime
    total_blocks: int
    processed: int
    results: List[NotificationResult] = []
    sent: int = 0
    failed: int = 0
    errors: int = 0
    skipped: int = 0
