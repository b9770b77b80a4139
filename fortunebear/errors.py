from enum import Enum
from typing import Optional


class FortuneBearError(Exception):
    """서비스 전용 예외의 공통 부모 클래스"""


class ValidationReason(str, Enum):
    MISSING_OPTION = "MissingOption"
    MISSING_FIELD = "MissingField"


class ValidationError(FortuneBearError):
    """클라이언트 입력 누락 (HTTP 400)"""

    def __init__(self, reason: ValidationReason, message: str = ""):
        self.reason = reason
        self.message = message or reason.value
        super().__init__(self.message)


class UpstreamError(FortuneBearError):
    """LLM 제공자 또는 리뷰 저장소 호출 실패. detail은 로그에만 남긴다."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(detail)


class ExtractionErrorKind(str, Enum):
    EMPTY_RESPONSE = "EmptyResponse"
    NO_JSON_OBJECT_FOUND = "NoJsonObjectFound"
    MALFORMED_JSON = "MalformedJson"


class ExtractionError(FortuneBearError):
    """LLM 응답 텍스트에서 JSON 객체를 복구하지 못함"""

    def __init__(self, kind: ExtractionErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)
