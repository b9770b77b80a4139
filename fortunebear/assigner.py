"""
서버가 직접 정하는 값들: 오늘의 점수와 테마.

점수는 LLM에게 묻지 않는다. 요청마다 새로 뽑고, 모델 출력에 덮어쓴다.
"""

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

SCORE_MIN = 0
SCORE_MAX = 100
SCORE_MIDPOINT = 50

KST = timezone(timedelta(hours=9), name="KST")

# (월, 일) -> 테마
CALENDAR_EVENTS = {
    (1, 1): "새해 첫날",
    (2, 14): "발렌타인데이",
    (3, 1): "삼일절",
    (3, 14): "화이트데이",
    (5, 5): "어린이날",
    (5, 8): "어버이날",
    (6, 6): "현충일",
    (8, 15): "광복절",
    (10, 3): "개천절",
    (10, 9): "한글날",
    (11, 11): "빼빼로데이",
    (12, 24): "크리스마스 이브",
    (12, 25): "크리스마스",
    (12, 31): "한 해의 마지막 날",
}

# datetime.weekday() 순서 (월=0)
WEEKDAY_THEMES = (
    "한 주를 여는 월요일",
    "속도가 붙는 화요일",
    "한가운데 수요일",
    "끝이 보이는 목요일",
    "홀가분한 금요일",
    "느긋한 토요일",
    "다음을 준비하는 일요일",
)


class ScoreBand(str, Enum):
    DISCOURAGING = "discouraging"  # 0-20
    CAUTIOUS = "cautious"  # 21-40
    NEUTRAL = "neutral"  # 41-60
    ENCOURAGING = "encouraging"  # 61-80
    HIGHLY_POSITIVE = "highly_positive"  # 81-100


BAND_TONES = {
    ScoreBand.DISCOURAGING: "조금 무겁고 조심스러운",
    ScoreBand.CAUTIOUS: "살짝 신중한",
    ScoreBand.NEUTRAL: "담담하고 평온한",
    ScoreBand.ENCOURAGING: "은근히 힘이 되는",
    ScoreBand.HIGHLY_POSITIVE: "밝고 기분 좋은",
}


def score_band(score: int) -> ScoreBand:
    if score <= 20:
        return ScoreBand.DISCOURAGING
    if score <= 40:
        return ScoreBand.CAUTIOUS
    if score <= 60:
        return ScoreBand.NEUTRAL
    if score <= 80:
        return ScoreBand.ENCOURAGING
    return ScoreBand.HIGHLY_POSITIVE


def theme_for(moment: datetime) -> str:
    event = CALENDAR_EVENTS.get((moment.month, moment.day))
    if event:
        return event
    return WEEKDAY_THEMES[moment.weekday()]


def now_kst() -> datetime:
    return datetime.now(KST)


@dataclass(frozen=True)
class Assignment:
    score: int
    theme: str


class ScoreAssigner:
    """요청마다 독립적인 점수와 날짜 기반 테마를 만든다."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.rng = rng or random.SystemRandom()
        self.clock = clock or now_kst

    def assign(self) -> Assignment:
        score = self.rng.randint(SCORE_MIN, SCORE_MAX)
        return Assignment(score=score, theme=theme_for(self.clock()))
