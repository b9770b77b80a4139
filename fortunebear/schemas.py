from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List


class CamelModel(BaseModel):
    """JSON 필드명은 camelCase (primaryComment, hasMore ...)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- 요청 스키마 ---
# 필드 누락은 FastAPI 기본 422가 아니라 서비스 단에서 400으로 처리하므로 모두 Optional
class DecideRequest(CamelModel):
    option_a: Optional[str] = Field(None, examples=["짜장면"])
    option_b: Optional[str] = Field(None, examples=["짬뽕"])


class ReviewCreateRequest(CamelModel):
    nickname: Optional[str] = Field(None, examples=["곰돌이"])
    content: Optional[str] = Field(None, examples=["오늘 말이 꼭 맞았어요."])


# --- 응답 스키마 ---
class RiskResponse(CamelModel):
    success: bool = True
    score: int = Field(..., ge=0, le=100)
    title: str
    primary_comment: str = Field(..., description="포춘베어의 한마디 (2문장)")
    secondary_tip: str = Field(..., description="오늘을 위한 작은 제안 (2문장)")
    theme: str = Field(..., description="날짜 기반 테마")


class DecideResult(CamelModel):
    picked: str
    justification: str


class DecideResponse(CamelModel):
    success: bool = True
    result: DecideResult


class SuccessResponse(CamelModel):
    success: bool = True


class ReviewItem(CamelModel):
    id: Optional[int] = None
    nickname: str
    content: str
    created_at: Optional[str] = None


class ReviewListResponse(CamelModel):
    success: bool = True
    reviews: List[ReviewItem]
    page: int
    limit: int
    total: int
    has_more: bool


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
