"""
라우트에서 사용하는 서비스 의존성
서버 시작 시 app.state 에 올려둔 객체를 요청마다 꺼내 씁니다.
"""

from fastapi import Request

from study_blocks.services.block_service import BlockService
from study_blocks.services.dispatcher import NotificationDispatcher
from study_blocks.services.email_sender import EmailSender


def get_block_service(request: Request) -> BlockService:
    state = request.app.state
    return BlockService(state.store, state.tz, clock=state.clock)


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.sender


def get_dispatcher(request: Request) -> NotificationDispatcher:
    state = request.app.state
    return NotificationDispatcher(state.store, state.sender, clock=state.clock)
