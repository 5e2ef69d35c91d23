"""
FastAPI 서버 메인 파일
공부 블록 생성/조회/삭제 API 와 알림 디스패처 엔드포인트를 제공합니다.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from study_blocks.auth import SupabaseIdentity
from study_blocks.config import Settings, configure_logging, load_settings
from study_blocks.errors import StudyBlockError
from study_blocks.models.database import BlockStore, close_supabase, init_supabase
from study_blocks.routes import blocks, notifications
from study_blocks.services.block_service import utc_now
from study_blocks.services.email_sender import EmailSender

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store: Optional[BlockStore] = None,
               identity=None, sender: Optional[EmailSender] = None,
               clock: Callable[[], datetime] = utc_now) -> FastAPI:
    """앱 생성

    인자로 넘기지 않은 구성 요소는 서버 시작 시 환경 변수로부터 만듭니다.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_settings = settings or load_settings()
        configure_logging(app_settings.log_level)

        client = None
        if store is None or identity is None:
            client = init_supabase(app_settings)

        tz = ZoneInfo(app_settings.timezone)
        app.state.settings = app_settings
        app.state.tz = tz
        app.state.clock = clock
        app.state.store = store or BlockStore(client)
        app.state.identity = identity or SupabaseIdentity(client)
        app.state.sender = sender or EmailSender(app_settings, tz)
        logger.info("서버가 시작되었습니다. (timezone=%s)", app_settings.timezone)
        try:
            yield
        finally:
            if client is not None:
                close_supabase(client)
            logger.info("서버가 종료되었습니다.")

    app = FastAPI(title="Study Blocks API", version="1.0.0", lifespan=lifespan)

    # CORS 설정 (웹 프론트엔드에서 접근 가능하도록)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 라우터 등록
    app.include_router(blocks.router, prefix="/api", tags=["study-blocks"])
    app.include_router(notifications.router, prefix="/api", tags=["notifications"])

    @app.exception_handler(StudyBlockError)
    async def study_block_error_handler(request: Request, exc: StudyBlockError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        # loc 는 ("body", 필드명, 유니온 타입명...) 형태
        loc = errors[0]["loc"] if errors else ()
        field = str(loc[1]) if len(loc) > 1 else "body"
        return JSONResponse(
            status_code=400,
            content={"error": "요청 형식이 올바르지 않습니다.", "kind": "invalid_input", "field": field},
        )

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return {"message": "Study Blocks API", "status": "running"}

    @app.get("/health")
    def health_check(request: Request):
        """헬스 체크"""
        database = "ok" if request.app.state.store.ping() else "unavailable"
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": database,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
