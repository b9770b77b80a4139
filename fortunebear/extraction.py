import re
import json
from typing import Any, Dict

from .errors import ExtractionError, ExtractionErrorKind

# ```json, ```JSON, ``` 모두 제거
_CODE_FENCE = re.compile(r"```[A-Za-z0-9_-]*")


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text).strip()


def extract(raw_text: str) -> Dict[str, Any]:
    """
    LLM 응답 텍스트에서 JSON 객체 하나를 꺼낸다.

    JSON 앞뒤에 설명 문장이나 코드 블록이 붙어 와도 첫 '{'부터 마지막 '}'까지
    잘라서 파싱한다. 스키마 검증은 하지 않는다(reconcile 단계의 몫).
    """
    if raw_text is None or not raw_text.strip():
        raise ExtractionError(ExtractionErrorKind.EMPTY_RESPONSE)

    cleaned = strip_code_fences(raw_text)

    start = cleaned.find("{")
    if start == -1:
        raise ExtractionError(ExtractionErrorKind.NO_JSON_OBJECT_FOUND)

    end = cleaned.rfind("}")
    if end < start:
        # 여는 괄호만 있고 닫는 괄호가 없으면 응답이 잘린 것으로 본다.
        raise ExtractionError(
            ExtractionErrorKind.MALFORMED_JSON, "unterminated JSON object"
        )

    try:
        parsed = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as e:
        raise ExtractionError(ExtractionErrorKind.MALFORMED_JSON, str(e)) from e

    if not isinstance(parsed, dict):
        raise ExtractionError(
            ExtractionErrorKind.MALFORMED_JSON,
            f"expected a JSON object, got {type(parsed).__name__}",
        )
    return parsed
