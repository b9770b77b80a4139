import random
import logging
from dataclasses import dataclass
from typing import Optional

from openai import OpenAI

from .assigner import ScoreAssigner
from .errors import ExtractionError, UpstreamError, ValidationError, ValidationReason
from .extraction import extract
from .prompts import GenerationRequest, RequestBuilder
from .reconcile import DEFAULT_TITLE_MAX_LENGTH, ScoredRecord, reconcile

logger = logging.getLogger("FortuneBearService")


class OpenAIProvider:
    """LLM 호출 전담. 실패는 모두 UpstreamError로 바꿔서 올린다."""

    def __init__(
        self, api_key: Optional[str], model: str = "gpt-4.1-mini", timeout: float = 15.0
    ):
        self.model = model
        if api_key:
            self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
            logger.info("OpenAI 클라이언트가 성공적으로 초기화되었습니다.")
        else:
            self.client = None
            logger.error("!!! OPENAI_API_KEY를 찾을 수 없습니다 !!!")

    def generate(self, request: GenerationRequest) -> str:
        if not self.client:
            raise UpstreamError("OpenAI client is not configured")

        kwargs = {}
        if request.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": request.system},
                    {"role": "user", "content": request.user},
                ],
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                **kwargs,
            )
            content = response.choices[0].message.content
        except Exception as e:
            logger.error(f"GPT 호출 중 에러 발생: {e}")
            raise UpstreamError(str(e)) from e

        if content is None:
            raise UpstreamError("empty completion content")
        logger.info("GPT 응답 수신 완료")
        return content


@dataclass(frozen=True)
class ChoiceResult:
    picked: str
    justification: str


class FortuneService:
    """비즈니스 로직 오케스트레이터 (점수 배정 -> 프롬프트 -> LLM -> 추출 -> 보정)"""

    def __init__(
        self,
        provider,
        assigner: Optional[ScoreAssigner] = None,
        builder: Optional[RequestBuilder] = None,
        rng: Optional[random.Random] = None,
        title_max_length: int = DEFAULT_TITLE_MAX_LENGTH,
    ):
        self.provider = provider
        self.rng = rng or random.SystemRandom()
        self.assigner = assigner or ScoreAssigner(rng=self.rng)
        self.builder = builder or RequestBuilder(title_max_length=title_max_length)
        self.title_max_length = title_max_length

    def handle_generation_request(self) -> ScoredRecord:
        assignment = self.assigner.assign()
        logger.info(
            f"--- 오늘의 리스크 생성 시작: score={assignment.score}, theme={assignment.theme} ---"
        )
        request = self.builder.build(assignment.score, assignment.theme)

        extracted = None
        extraction_failed = False
        try:
            raw_text = self.provider.generate(request)
        except Exception as e:
            logger.error(f"LLM 호출 실패로 기본 문구를 사용합니다: {e}")
            extraction_failed = True
        else:
            try:
                extracted = extract(raw_text)
            except ExtractionError as e:
                logger.warning(
                    f"JSON 추출 실패({e.kind.value}): {e.detail or ''} / 원문: {raw_text[:300]!r}"
                )
                extraction_failed = True

        record = reconcile(
            assignment.score,
            extracted,
            extraction_failed,
            assignment.theme,
            title_max_length=self.title_max_length,
        )
        if record.from_fallback:
            logger.info("--- 기본 문구가 포함된 결과로 응답 ---")
        else:
            logger.info("--- AI 생성 결과로 응답 ---")
        return record

    def handle_choice_request(
        self, option_a: Optional[str], option_b: Optional[str]
    ) -> ChoiceResult:
        option_a = option_a.strip() if isinstance(option_a, str) else ""
        option_b = option_b.strip() if isinstance(option_b, str) else ""
        if not option_a or not option_b:
            raise ValidationError(
                ValidationReason.MISSING_OPTION, "두 가지 선택지를 모두 입력해 주세요."
            )

        # 선택은 서버가 먼저 끝낸다. 모델은 이유만 말한다.
        picked = self.rng.choice([option_a, option_b])
        logger.info(f"선택 완료: {picked}")

        request = self.builder.build_choice(option_a, option_b, picked)
        justification = self.provider.generate(request).strip()
        if not justification:
            raise UpstreamError("empty justification")
        return ChoiceResult(picked=picked, justification=justification)
