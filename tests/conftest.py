import random
from datetime import datetime

import pytest

from fortunebear.assigner import KST, ScoreAssigner
from fortunebear.config import Settings
from fortunebear.errors import UpstreamError, ValidationError, ValidationReason
from fortunebear.main import create_app
from fortunebear.reviews import ReviewEntry, ReviewPage, normalize_paging
from fortunebear.service import FortuneService


class FakeProvider:
    """미리 정해 둔 응답을 순서대로 돌려주는 LLM 대역. Exception이면 raise"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if self.responses else ""
        if isinstance(response, Exception):
            raise response
        return response


class FixedScoreRandom(random.Random):
    """randint는 고정 점수를, choice는 정해진 위치의 항목을 돌려준다."""

    def __init__(self, score=50, pick_index=0):
        super().__init__(0)
        self.score = score
        self.pick_index = pick_index

    def randint(self, a, b):
        return self.score

    def choice(self, seq):
        return seq[self.pick_index]


class InMemoryReviewStore:
    def __init__(self, fail=False):
        self.rows = []
        self.fail = fail

    def insert(self, nickname, content):
        nickname = (nickname or "").strip()
        content = (content or "").strip()
        if not nickname or not content:
            raise ValidationError(ValidationReason.MISSING_FIELD)
        if self.fail:
            raise UpstreamError("store down")
        self.rows.append(
            ReviewEntry(
                id=len(self.rows) + 1,
                nickname=nickname,
                content=content,
                created_at="2026-10-19T09:00:00+00:00",
            )
        )

    def list_page(self, page=1, limit=5):
        if self.fail:
            raise UpstreamError("store down")
        page, limit = normalize_paging(page, limit)
        offset = (page - 1) * limit
        ordered = sorted(self.rows, key=lambda r: r.id, reverse=True)
        chunk = ordered[offset : offset + limit]
        return ReviewPage(
            reviews=chunk,
            page=page,
            limit=limit,
            total=len(ordered),
            has_more=offset + len(chunk) < len(ordered),
        )


# 2026-10-19 (월요일)
FIXED_MOMENT = datetime(2026, 10, 19, 10, 0, tzinfo=KST)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_MOMENT


@pytest.fixture
def make_service(fixed_clock):
    def _make(provider, score=50, pick_index=0):
        rng = FixedScoreRandom(score=score, pick_index=pick_index)
        return FortuneService(
            provider, assigner=ScoreAssigner(rng=rng, clock=fixed_clock), rng=rng
        )

    return _make


@pytest.fixture
def review_store():
    return InMemoryReviewStore()


@pytest.fixture
def make_client(review_store):
    from fastapi.testclient import TestClient

    def _make(service, store=None, raise_server_exceptions=True):
        app = create_app(
            settings=Settings(),
            fortune_service=service,
            review_store=store or review_store,
        )
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return _make
