import logging
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import schemas
from .assigner import ScoreAssigner
from .config import Settings, load_settings
from .errors import UpstreamError, ValidationError
from .prompts import RequestBuilder, load_templates
from .reviews import ReviewStore
from .service import FortuneService, OpenAIProvider

logger = logging.getLogger("FortuneBearAPI")

UNAVAILABLE_MESSAGE = "포춘베어가 지금은 말을 아낀다."
BAD_REQUEST_MESSAGE = "요청 형식이 올바르지 않습니다."


def build_fortune_service(settings: Settings) -> FortuneService:
    provider = OpenAIProvider(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.openai_timeout,
    )
    builder = RequestBuilder(
        templates=load_templates(settings.prompts_file),
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        title_max_length=settings.title_max_length,
    )
    return FortuneService(
        provider,
        assigner=ScoreAssigner(),
        builder=builder,
        title_max_length=settings.title_max_length,
    )


def build_review_store(settings: Settings) -> ReviewStore:
    return ReviewStore(
        url=settings.store_url,
        key=settings.store_key,
        table=settings.reviews_table,
        timeout=settings.store_timeout,
    )


def get_fortune_service(request: Request) -> FortuneService:
    return request.app.state.fortune_service


def get_review_store(request: Request) -> ReviewStore:
    return request.app.state.review_store


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=schemas.ErrorResponse(message=message).model_dump(by_alias=True),
    )


def create_app(
    settings: Optional[Settings] = None,
    fortune_service: Optional[FortuneService] = None,
    review_store: Optional[ReviewStore] = None,
) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(
        title="FortuneBear API",
        description="포춘베어 - 오늘의 리스크, 둘 중 하나 골라주기, 리뷰",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.fortune_service = fortune_service or build_fortune_service(settings)
    app.state.review_store = review_store or build_review_store(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info(f"[{request.url.path}] 잘못된 요청: {exc.reason.value}")
        return _error(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ):
        logger.info(f"[{request.url.path}] 요청 본문 검증 실패: {exc.errors()}")
        return _error(400, BAD_REQUEST_MESSAGE)

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        logger.error(f"[{request.url.path}] 외부 서비스 오류: {exc.detail}")
        return _error(500, UNAVAILABLE_MESSAGE)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"[{request.url.path}] 예상치 못한 오류: {exc}")
        return _error(500, UNAVAILABLE_MESSAGE)

    @app.get("/", tags=["Health"])
    def read_root():
        """로드밸런서의 상태 확인(Health Check)을 위한 엔드포인트입니다."""
        return {"status": "healthy", "message": "FortuneBear API is running"}

    @app.post("/api/risk", response_model=schemas.RiskResponse, tags=["Fortune"])
    def get_today_risk(service: FortuneService = Depends(get_fortune_service)):
        """포춘베어 - 오늘의 리스크 하나 반환. 점수는 서버가 정한다."""
        try:
            record = service.handle_generation_request()
        except Exception as e:
            logger.exception(f"리스크 생성 중 오류 발생: {e}")
            return _error(500, UNAVAILABLE_MESSAGE)
        return schemas.RiskResponse(
            score=record.score,
            title=record.title,
            primary_comment=record.primary_comment,
            secondary_tip=record.secondary_tip,
            theme=record.theme,
        )

    @app.post("/api/decide", response_model=schemas.DecideResponse, tags=["Fortune"])
    def decide(
        body: schemas.DecideRequest,
        service: FortuneService = Depends(get_fortune_service),
    ):
        """둘 중 하나를 무작위로 고르고, 고른 이유는 LLM이 말한다."""
        result = service.handle_choice_request(body.option_a, body.option_b)
        return schemas.DecideResponse(
            result=schemas.DecideResult(
                picked=result.picked, justification=result.justification
            )
        )

    @app.post("/api/reviews", response_model=schemas.SuccessResponse, tags=["Reviews"])
    def create_review(
        body: schemas.ReviewCreateRequest,
        store: ReviewStore = Depends(get_review_store),
    ):
        store.insert(body.nickname, body.content)
        return schemas.SuccessResponse()

    @app.get(
        "/api/reviews", response_model=schemas.ReviewListResponse, tags=["Reviews"]
    )
    def list_reviews(
        page: Optional[str] = None,
        limit: Optional[str] = None,
        store: ReviewStore = Depends(get_review_store),
    ):
        result = store.list_page(page, limit)
        return schemas.ReviewListResponse(
            reviews=[
                schemas.ReviewItem(
                    id=r.id,
                    nickname=r.nickname,
                    content=r.content,
                    created_at=r.created_at,
                )
                for r in result.reviews
            ],
            page=result.page,
            limit=result.limit,
            total=result.total,
            has_more=result.has_more,
        )

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
