import json
import string
import logging
from typing import Optional

from pydantic import BaseModel

from .assigner import BAND_TONES, score_band

logger = logging.getLogger("FortuneBearService")

# str.format 템플릿이므로 JSON 중괄호는 두 번 쓴다.
DEFAULT_SCHEMA_DESCRIPTION = (
    '{{"score": <정수, 그대로 옮겨 적을 것>, '
    '"title": "<오늘의 리스크, 명사형 또는 상태 표현, 최대 {title_max_length}자>", '
    '"primaryComment": "<포춘베어의 한마디, 1인칭으로 관찰하듯 말하는 2문장>", '
    '"secondaryTip": "<오늘을 위한 작은 제안, 명령이 아닌 선택처럼 말하는 2문장>"}}'
)

DEFAULT_SYSTEM_PROMPT = """너는 '포춘베어'다.
사람을 겁주지 않고, 예언도 하지 않는다.

너는 오늘 하루를 가볍게 바라보며
"이런 흐름이 있을 수도 있겠다"라고 말해주는 곰이다.

사고, 질병, 재난, 불행 같은 자극적인 단어는 절대 사용하지 않는다.
불안이나 공포를 유발하지 않는다.

모든 문장은 포춘베어가 직접 말하는 것처럼
차분하고 낮은 톤의 1인칭 화법으로 작성한다.

문체 규칙:
- "~일 것 같다", "~일지도 모른다" 사용 가능
- "~하세요", "~해야 한다" 사용 금지
- 단정적 표현, 경고, 예언 금지
- 과장 없이 담담하게

반드시 아래 JSON 형식 하나만 출력한다. 설명, 마크다운, 코드 블록은 붙이지 않는다.
{schema}
"""

DEFAULT_USER_PROMPT = (
    "오늘의 점수는 {score}점이다. 이 점수는 이미 정해졌으니 바꾸지 말고 그대로 적어라.\n"
    "오늘의 테마는 '{theme}'이다.\n"
    "점수에 어울리는 {tone} 분위기로, 테마를 은근히 녹여서 작성해라."
)

DEFAULT_CHOICE_SYSTEM_PROMPT = """너는 '포춘베어'다.
두 가지 선택지 중 하나는 이미 골라져 있다. 너는 다시 고르지 않는다.
골라진 쪽이 오늘 왜 괜찮은 선택일 수 있는지, 차분한 1인칭 화법으로 2문장만 말한다.
명령하거나 단정하지 않고, 다른 선택지를 깎아내리지 않는다."""

DEFAULT_CHOICE_USER_PROMPT = (
    "선택지 A: {option_a}\n"
    "선택지 B: {option_b}\n"
    "이미 고른 것: {picked}\n"
    "고른 이유를 2문장으로 말해라."
)


class PromptTemplates(BaseModel):
    """LLM에 보내는 문구. 코드가 아니라 설정 데이터로 취급한다."""

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    user_prompt: str = DEFAULT_USER_PROMPT
    schema_description: str = DEFAULT_SCHEMA_DESCRIPTION
    choice_system_prompt: str = DEFAULT_CHOICE_SYSTEM_PROMPT
    choice_user_prompt: str = DEFAULT_CHOICE_USER_PROMPT


# 템플릿별로 허용되는 자리표시자
_SAMPLE_VALUES = {
    "system_prompt": {"schema": ""},
    "user_prompt": {"score": 0, "theme": "", "tone": "", "title_max_length": 8},
    "schema_description": {"title_max_length": 8},
    "choice_system_prompt": {},
    "choice_user_prompt": {"option_a": "", "option_b": "", "picked": ""},
}

# 빠지면 안 되는 자리표시자. system_prompt에 스키마가 없으면 JSON 모드 요청이 실패한다.
_REQUIRED_FIELDS = {"system_prompt": {"schema"}}


def _field_names(template: str) -> set:
    return {field for _, field, _, _ in string.Formatter().parse(template) if field}


def load_templates(path: Optional[str]) -> PromptTemplates:
    """JSON 파일의 값으로 기본 템플릿을 덮어쓴다. 문제가 있는 항목은 기본값을 유지한다."""
    if not path:
        return PromptTemplates()

    try:
        with open(path, encoding="utf-8") as f:
            overrides = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"프롬프트 파일 로드 실패({path}): {e}. 기본 템플릿 사용")
        return PromptTemplates()

    if not isinstance(overrides, dict):
        logger.error(f"프롬프트 파일({path})이 JSON 객체가 아닙니다. 기본 템플릿 사용")
        return PromptTemplates()

    accepted = {}
    for name, value in overrides.items():
        if name not in _SAMPLE_VALUES:
            logger.warning(f"알 수 없는 프롬프트 항목 무시: {name}")
            continue
        if not isinstance(value, str) or not value.strip():
            logger.warning(f"[{name}] 빈 값이거나 문자열이 아니어서 무시합니다.")
            continue
        try:
            value.format(**_SAMPLE_VALUES[name])
        except (KeyError, IndexError, ValueError, AttributeError) as e:
            logger.warning(f"[{name}] 자리표시자 오류({e})로 무시합니다.")
            continue
        missing = _REQUIRED_FIELDS.get(name, set()) - _field_names(value)
        if missing:
            logger.warning(f"[{name}] 필수 자리표시자 {sorted(missing)}가 없어 무시합니다.")
            continue
        accepted[name] = value

    logger.info(f"프롬프트 파일 적용 완료: {sorted(accepted)}")
    return PromptTemplates(**accepted)


class GenerationRequest(BaseModel):
    system: str
    user: str
    temperature: float
    max_tokens: int
    json_mode: bool = False


class RequestBuilder:
    def __init__(
        self,
        templates: Optional[PromptTemplates] = None,
        temperature: float = 0.9,
        max_tokens: int = 400,
        title_max_length: int = 8,
    ):
        self.templates = templates or PromptTemplates()
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.title_max_length = title_max_length

    def build(
        self, score: int, theme: str, schema_description: Optional[str] = None
    ) -> GenerationRequest:
        # 호출자가 넘긴 스키마 설명은 가공하지 않는다.
        schema = schema_description or self.templates.schema_description.format(
            title_max_length=self.title_max_length
        )
        return GenerationRequest(
            system=self.templates.system_prompt.format(schema=schema),
            user=self.templates.user_prompt.format(
                score=score,
                theme=theme,
                tone=BAND_TONES[score_band(score)],
                title_max_length=self.title_max_length,
            ),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            json_mode=True,
        )

    def build_choice(
        self, option_a: str, option_b: str, picked: str
    ) -> GenerationRequest:
        return GenerationRequest(
            system=self.templates.choice_system_prompt,
            user=self.templates.choice_user_prompt.format(
                option_a=option_a, option_b=option_b, picked=picked
            ),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            json_mode=False,
        )
