"""
공부 블록 관련 API 라우트
"""

from fastapi import APIRouter, Depends
from typing import Optional

from study_blocks.auth import CurrentUser, get_current_user
from study_blocks.dependencies import get_block_service
from study_blocks.models.study_block import StudyBlockCreate, StudyBlockDelete
from study_blocks.services.block_service import BlockService

router = APIRouter()


@router.post("/study-blocks")
def create_study_block(
    body: StudyBlockCreate,
    user: CurrentUser = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    """공부 블록 생성"""
    # 직접 입력 시간을 고른 경우 customDuration 사용
    duration = body.custom_duration if body.use_custom_time else body.duration

    block_id = service.create_block(
        owner_id=user.id,
        owner_email=user.email,
        subject=body.subject,
        date=body.date,
        start_time_of_day=body.start_time,
        duration_minutes=duration,
    )
    return {"success": True, "id": block_id}


@router.get("/study-blocks")
def list_study_blocks(
    user: CurrentUser = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    """내 공부 블록 목록 조회 (시작 시간 순)"""
    blocks = service.list_blocks(user.id)
    return {"studyBlocks": [block.to_response() for block in blocks]}


@router.delete("/study-blocks")
def delete_study_block(
    body: Optional[StudyBlockDelete] = None,
    user: CurrentUser = Depends(get_current_user),
    service: BlockService = Depends(get_block_service),
):
    """공부 블록 삭제"""
    service.delete_block(user.id, body.block_id if body else None)
    return {"success": True}
