"""
LLM이 돌려준 필드를 검증하고, 쓸 수 없는 필드는 점수대에 맞는 고정 문구로 채운다.

여기서는 어떤 경우에도 예외를 던지지 않는다. /api/risk 가 항상 완성된 응답을
돌려줄 수 있게 하는 마지막 안전망이다.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .assigner import SCORE_MIDPOINT, ScoreBand, score_band

DEFAULT_TITLE_MAX_LENGTH = 8

FALLBACK_TITLE_BRIGHT = "잔잔한 순풍"
FALLBACK_TITLE_QUIET = "고요한 쉼표"

FALLBACK_COMMENTS = {
    ScoreBand.DISCOURAGING: (
        "오늘은 마음이 조금 무겁게 느껴질지도 모르겠다. 나도 이런 날엔 굴 안에서 천천히 숨을 고르는 편이다.",
        "오늘은 일이 생각보다 더디게 흘러갈 것 같다. 그래도 더딘 흐름이 꼭 나쁜 건 아니라고 나는 생각한다.",
        "오늘은 작은 말 한마디가 오래 남을지도 모르겠다. 나는 그런 날엔 말수를 조금 줄여 두곤 한다.",
    ),
    ScoreBand.CAUTIOUS: (
        "오늘은 서두르면 작은 것을 놓칠 수도 있겠다. 나는 한 박자 늦게 움직이는 쪽이 편하게 느껴진다.",
        "오늘은 계획이 살짝 어긋날지도 모르겠다. 어긋난 자리에서 다른 길이 보이기도 한다고 나는 생각한다.",
        "오늘은 기운이 조금 들쭉날쭉할 것 같다. 나는 그런 날의 리듬을 그냥 지켜보는 편이다.",
    ),
    ScoreBand.NEUTRAL: (
        "오늘은 크게 기울지 않은 평범한 하루일 것 같다. 나는 이런 날의 고요함이 꽤 마음에 든다.",
        "오늘은 익숙한 일들이 익숙하게 흘러갈지도 모르겠다. 그 익숙함 속에 작은 여유가 숨어 있을 것 같다.",
        "오늘은 특별한 소식 없이 지나갈 것 같다. 나는 그런 하루가 의외로 든든하다고 느낀다.",
    ),
    ScoreBand.ENCOURAGING: (
        "오늘은 생각보다 일이 부드럽게 풀릴지도 모르겠다. 나는 그 흐름에 조금 기대 봐도 괜찮을 것 같다.",
        "오늘은 누군가의 말이 작은 힘이 되어 줄 것 같다. 나도 그런 순간을 조용히 기다려 본다.",
        "오늘은 미뤄 둔 일이 가볍게 느껴질지도 모르겠다. 나는 그런 날의 발걸음이 좋다.",
    ),
    ScoreBand.HIGHLY_POSITIVE: (
        "오늘은 햇볕이 유난히 따뜻하게 느껴질 것 같다. 나는 이런 날이면 괜히 콧노래가 나온다.",
        "오늘은 바라던 일이 슬며시 다가올지도 모르겠다. 나는 그 기운을 곁에서 함께 느껴 보고 싶다.",
        "오늘은 마음먹은 만큼 일이 따라와 줄 것 같다. 나는 이런 흐름이 오래 머물렀으면 한다.",
    ),
}

FALLBACK_TIPS = {
    ScoreBand.DISCOURAGING: (
        "따뜻한 차 한 잔으로 하루를 시작해 보는 것도 괜찮을 것 같다. 오늘은 해야 할 일을 하나만 정해 두어도 충분하다.",
        "일찍 잠자리에 드는 것도 하나의 선택일지도 모른다. 내일의 나에게 조금 남겨 두어도 괜찮다.",
        "좋아하는 노래 한 곡을 끝까지 들어 보는 것도 좋을 것 같다. 그 사이 마음이 조금 가라앉을지도 모른다.",
    ),
    ScoreBand.CAUTIOUS: (
        "중요한 약속은 한 번 더 확인해 두는 것도 괜찮을 것 같다. 여유 시간을 조금 넉넉히 잡아 두어도 좋다.",
        "답장이 급하지 않다면 잠시 미뤄 두는 것도 방법일지도 모른다. 천천히 읽으면 다르게 보일 수도 있다.",
        "점심 뒤에 짧게 걸어 보는 것도 괜찮을 것 같다. 걸음만큼 생각도 정리될지도 모른다.",
    ),
    ScoreBand.NEUTRAL: (
        "평소와 다른 길로 한 번 걸어 보는 것도 괜찮을 것 같다. 작은 변화가 하루를 새롭게 만들지도 모른다.",
        "오래 연락하지 못한 사람에게 안부를 건네는 것도 좋을 것 같다. 짧은 한 줄이면 충분할지도 모른다.",
        "책상 위를 조금 정리해 보는 것도 하나의 선택이다. 정돈된 자리가 마음을 편하게 해 줄지도 모른다.",
    ),
    ScoreBand.ENCOURAGING: (
        "미뤄 둔 일 하나를 오늘 시작해 보는 것도 괜찮을 것 같다. 시작만 해 두어도 흐름이 이어질지도 모른다.",
        "고마웠던 사람에게 마음을 전해 보는 것도 좋을 것 같다. 그 말이 다시 나에게 돌아올지도 모른다.",
        "새로운 메뉴를 골라 보는 것도 하나의 선택이다. 뜻밖의 즐거움이 기다리고 있을지도 모른다.",
    ),
    ScoreBand.HIGHLY_POSITIVE: (
        "오늘의 좋은 기운을 누군가와 나눠 보는 것도 괜찮을 것 같다. 나눈 만큼 더 오래 남을지도 모른다.",
        "망설이던 일에 한 걸음 내디뎌 보는 것도 좋을 것 같다. 오늘이라면 발이 가볍게 움직일지도 모른다.",
        "오늘 있었던 좋은 순간을 짧게 적어 두는 것도 하나의 선택이다. 나중에 꺼내 보면 힘이 될지도 모른다.",
    ),
}


@dataclass(frozen=True)
class ScoredRecord:
    score: int
    title: str
    primary_comment: str
    secondary_tip: str
    theme: str
    from_fallback: bool = False


def _usable_text(value: Any) -> Optional[str]:
    """공백이 아닌 문자열이면 손대지 않고 그대로 돌려준다."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def fallback_title(score: int) -> str:
    return FALLBACK_TITLE_BRIGHT if score >= SCORE_MIDPOINT else FALLBACK_TITLE_QUIET


def fallback_comment(score: int) -> str:
    bank = FALLBACK_COMMENTS[score_band(score)]
    return bank[score % len(bank)]


def fallback_tip(score: int) -> str:
    bank = FALLBACK_TIPS[score_band(score)]
    return bank[score % len(bank)]


def reconcile(
    assigned_score: int,
    extracted: Optional[Dict[str, Any]],
    extraction_failed: bool,
    theme: str,
    title_max_length: int = DEFAULT_TITLE_MAX_LENGTH,
) -> ScoredRecord:
    fields = {} if extraction_failed or not isinstance(extracted, dict) else extracted

    title = _usable_text(fields.get("title"))
    comment = _usable_text(fields.get("primaryComment"))
    tip = _usable_text(fields.get("secondaryTip"))
    used_fallback = title is None or comment is None or tip is None

    # 모델이 score를 보냈더라도 무시한다.
    return ScoredRecord(
        score=assigned_score,
        # 제목만 앞뒤 공백을 정리한 뒤 길이 제한에 맞춰 자른다
        title=(title.strip() if title else fallback_title(assigned_score))[
            :title_max_length
        ],
        primary_comment=comment or fallback_comment(assigned_score),
        secondary_tip=tip or fallback_tip(assigned_score),
        theme=theme,
        from_fallback=used_fallback,
    )
