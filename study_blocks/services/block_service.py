"""
공부 블록 생성/조회/삭제 서비스
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Union
from zoneinfo import ZoneInfo

from study_blocks.errors import Conflict, InvalidInput, NotFound, TooSoon
from study_blocks.models.database import BlockStore, to_iso
from study_blocks.models.study_block import STATUS_UPCOMING, StudyBlock

logger = logging.getLogger(__name__)

NOTIFICATION_LEAD = timedelta(minutes=10)
MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 480


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_wall_clock(date: Optional[str], time_of_day: Optional[str],
                     tz: ZoneInfo) -> datetime:
    """'YYYY-MM-DD' + 'HH:MM' 를 tz 기준 시각으로 변환

    DST 전환으로 존재하지 않는 벽시계 시각은 거부합니다.
    """
    if not date or not date.strip():
        raise InvalidInput("date", "날짜를 입력해주세요.")
    if not time_of_day or not time_of_day.strip():
        raise InvalidInput("startTime", "시작 시간을 입력해주세요.")

    try:
        day = datetime.strptime(date.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidInput("date", f"날짜 형식이 올바르지 않습니다: {date!r}")

    clock = None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            clock = datetime.strptime(time_of_day.strip(), fmt).time()
            break
        except ValueError:
            continue
    if clock is None:
        raise InvalidInput("startTime", f"시간 형식이 올바르지 않습니다: {time_of_day!r}")

    local = datetime.combine(day, clock).replace(tzinfo=tz)
    try:
        # UTC로 갔다가 돌아왔을 때 벽시계가 바뀌면 존재하지 않는 시각
        round_trip = local.astimezone(timezone.utc).astimezone(tz)
    except OverflowError:
        raise InvalidInput("date", f"지원하지 않는 날짜입니다: {date!r}")
    if round_trip.replace(tzinfo=None) != local.replace(tzinfo=None):
        raise InvalidInput("startTime", f"{date} {time_of_day} 은(는) {tz.key} 시간대에 존재하지 않는 시각입니다.")
    return local


def parse_duration(value: Union[int, str, None]) -> int:
    """분 단위 길이 검증 (1~480)"""
    if isinstance(value, bool) or value is None:
        raise InvalidInput("duration", "공부 시간을 입력해주세요.")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidInput("duration", f"공부 시간은 정수여야 합니다: {value!r}")
    if not isinstance(value, int):
        raise InvalidInput("duration", "공부 시간은 정수여야 합니다.")
    if value < MIN_DURATION_MINUTES or value > MAX_DURATION_MINUTES:
        raise InvalidInput(
            "duration",
            f"공부 시간은 {MIN_DURATION_MINUTES}분 이상 {MAX_DURATION_MINUTES}분 이하여야 합니다.",
        )
    return value


class BlockService:
    """공부 블록 라이프사이클 관리"""

    def __init__(self, store: BlockStore, tz: ZoneInfo,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.tz = tz
        self.clock = clock

    def create_block(self, owner_id: str, owner_email: str, subject: Optional[str],
                     date: Optional[str], start_time_of_day: Optional[str],
                     duration_minutes: Union[int, str, None]) -> str:
        """블록 생성 후 id 반환

        Raises:
            InvalidInput: 입력 값 오류
            TooSoon: 시작 10분 전이 이미 지난 경우
            Conflict: 같은 사용자의 다른 블록과 시간이 겹치는 경우
        """
        subject = (subject or "").strip()
        if not subject:
            raise InvalidInput("subject", "과목을 입력해주세요.")

        start_time = parse_wall_clock(date, start_time_of_day, self.tz)
        duration = parse_duration(duration_minutes)

        try:
            start_time = start_time.astimezone(timezone.utc)
            end_time = start_time + timedelta(minutes=duration)
            notification_time = start_time - NOTIFICATION_LEAD
        except OverflowError:
            # 9999-12-31 23:00 처럼 끝 시각이 표현 범위를 넘는 경우
            raise InvalidInput("date", f"지원하지 않는 날짜입니다: {date!r}")

        now = self.clock()
        if notification_time <= now:
            raise TooSoon("공부 블록은 시작 시간 최소 10분 전에 만들어야 합니다.")

        existing = self.store.find_overlapping(owner_id, start_time, end_time)
        if existing:
            existing_start = existing.start_time.astimezone(self.tz)
            raise Conflict(
                f"'{existing.subject}' 블록({existing_start.strftime('%Y-%m-%d %H:%M')})과 시간이 겹칩니다.",
                subject=existing.subject,
                start_time=existing.start_time.isoformat(),
            )

        record = {
            "user_id": owner_id,
            "user_email": owner_email,
            "subject": subject,
            "duration": duration,
            "start_time": to_iso(start_time),
            "end_time": to_iso(end_time),
            "notification_time": to_iso(notification_time),
            "notification_sent": False,
            "status": STATUS_UPCOMING,
            "created_at": to_iso(now),
        }
        block_id = self.store.insert(record)
        logger.info("블록 생성: user=%s id=%s subject=%r start=%s",
                    owner_id, block_id, subject, record["start_time"])
        return block_id

    def list_blocks(self, owner_id: str) -> List[StudyBlock]:
        """사용자 블록 목록 (시작 시간 오름차순)"""
        blocks = self.store.list_by_owner(owner_id)
        return sorted(blocks, key=lambda b: b.start_time)

    def delete_block(self, owner_id: str, block_id: Optional[str]):
        """사용자 소유 블록 삭제

        다른 사용자의 블록도 존재하지 않는 블록과 똑같이 NotFound 로 처리합니다.
        """
        if not block_id or not str(block_id).strip():
            raise InvalidInput("blockId", "삭제할 블록 id를 입력해주세요.")

        block_id = str(block_id).strip()
        try:
            uuid.UUID(block_id)
        except ValueError:
            # id 형식이 아니면 존재할 수 없는 블록
            raise NotFound("공부 블록을 찾을 수 없습니다.")

        if not self.store.delete_owned(owner_id, block_id):
            raise NotFound("공부 블록을 찾을 수 없습니다.")
        logger.info("블록 삭제: user=%s id=%s", owner_id, block_id)
