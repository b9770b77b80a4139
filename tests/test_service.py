import json
from types import SimpleNamespace

import pytest

from fortunebear.assigner import ScoreBand
from fortunebear.errors import UpstreamError, ValidationError, ValidationReason
from fortunebear.prompts import RequestBuilder
from fortunebear.reconcile import FALLBACK_COMMENTS, FALLBACK_TIPS
from fortunebear.service import OpenAIProvider
from tests.conftest import FakeProvider

MODEL_JSON = json.dumps(
    {
        "score": 3,
        "title": "반짝이는 오후의 기운",
        "primaryComment": "오늘은 좋은 일이 있을 것 같다. 나는 그렇게 느낀다.",
        "secondaryTip": "산책도 괜찮을 것 같다. 천천히 걸어도 된다.",
    },
    ensure_ascii=False,
)


def test_generation_uses_model_fields_and_assigned_score(make_service):
    provider = FakeProvider(f"여기 있어요!\n```json\n{MODEL_JSON}\n```")
    record = make_service(provider, score=77).handle_generation_request()

    assert record.score == 77
    assert record.title == "반짝이는 오후의"
    assert record.primary_comment.startswith("오늘은 좋은 일이")
    assert record.theme == "한 주를 여는 월요일"
    assert record.from_fallback is False
    assert "77" in provider.requests[0].user


@pytest.mark.parametrize("model_score", [150, -20, None])
def test_model_score_never_leaks(make_service, model_score):
    payload = {"title": "t", "primaryComment": "a. b.", "secondaryTip": "c. d."}
    if model_score is not None:
        payload["score"] = model_score
    record = make_service(FakeProvider(json.dumps(payload)), score=33).handle_generation_request()
    assert record.score == 33


def test_provider_failure_falls_back(make_service):
    provider = FakeProvider(UpstreamError("timeout"))
    record = make_service(provider, score=5).handle_generation_request()

    assert record.score == 5
    assert record.from_fallback is True
    assert record.primary_comment in FALLBACK_COMMENTS[ScoreBand.DISCOURAGING]
    assert record.secondary_tip in FALLBACK_TIPS[ScoreBand.DISCOURAGING]


def test_unexpected_provider_exception_falls_back(make_service):
    record = make_service(FakeProvider(RuntimeError("boom")), score=95).handle_generation_request()
    assert record.primary_comment in FALLBACK_COMMENTS[ScoreBand.HIGHLY_POSITIVE]


@pytest.mark.parametrize("raw", ["", "포춘베어는 오늘 쉬어요", "{broken"])
def test_unusable_text_falls_back(make_service, raw):
    record = make_service(FakeProvider(raw), score=50).handle_generation_request()
    assert record.from_fallback is True
    assert record.primary_comment in FALLBACK_COMMENTS[ScoreBand.NEUTRAL]


def test_choice_picks_an_option_and_asks_for_justification(make_service):
    provider = FakeProvider("  짬뽕이 오늘은 더 어울릴 것 같다. 나는 따뜻한 국물이 좋다.  ")
    result = make_service(provider, pick_index=1).handle_choice_request("짜장면", "짬뽕")

    assert result.picked == "짬뽕"
    assert result.justification == "짬뽕이 오늘은 더 어울릴 것 같다. 나는 따뜻한 국물이 좋다."
    assert "이미 고른 것: 짬뽕" in provider.requests[0].user


@pytest.mark.parametrize("a, b", [("X", None), (None, "Y"), ("  ", "Y"), ("", "")])
def test_choice_requires_both_options(make_service, a, b):
    provider = FakeProvider("unused")
    with pytest.raises(ValidationError) as excinfo:
        make_service(provider).handle_choice_request(a, b)
    assert excinfo.value.reason is ValidationReason.MISSING_OPTION
    assert provider.requests == []


def test_choice_upstream_failure_propagates(make_service):
    with pytest.raises(UpstreamError):
        make_service(FakeProvider(UpstreamError("down"))).handle_choice_request("X", "Y")


def test_choice_empty_justification_is_upstream_error(make_service):
    with pytest.raises(UpstreamError):
        make_service(FakeProvider("   ")).handle_choice_request("X", "Y")


def test_openai_provider_without_key_raises_upstream_error():
    provider = OpenAIProvider(api_key=None)
    assert provider.client is None
    with pytest.raises(UpstreamError):
        provider.generate(None)


class _FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _provider_with(completions):
    provider = OpenAIProvider(api_key=None, model="gpt-4.1-mini")
    provider.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return provider


def test_openai_provider_requests_json_mode():
    completions = _FakeCompletions(content='{"title": "x"}')
    request = RequestBuilder(temperature=0.9, max_tokens=123).build(10, "월요일")

    assert _provider_with(completions).generate(request) == '{"title": "x"}'
    call = completions.calls[0]
    assert call["model"] == "gpt-4.1-mini"
    assert call["response_format"] == {"type": "json_object"}
    assert call["max_tokens"] == 123
    assert call["messages"][0]["role"] == "system"


def test_openai_provider_choice_is_plain_text():
    completions = _FakeCompletions(content="이유. 이유.")
    _provider_with(completions).generate(RequestBuilder().build_choice("a", "b", "a"))
    assert "response_format" not in completions.calls[0]


def test_openai_provider_wraps_sdk_errors():
    completions = _FakeCompletions(error=RuntimeError("rate limited"))
    with pytest.raises(UpstreamError) as excinfo:
        _provider_with(completions).generate(RequestBuilder().build(1, "t"))
    assert "rate limited" in excinfo.value.detail


def test_openai_provider_missing_content():
    with pytest.raises(UpstreamError):
        _provider_with(_FakeCompletions(content=None)).generate(RequestBuilder().build(1, "t"))
