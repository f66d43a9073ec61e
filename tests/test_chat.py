import requests

from fineflex.utils.advisor import generate_advice
from fineflex.utils.analyzer import StatisticsAggregator
from fineflex.utils.chat import (
    APOLOGY_MESSAGE,
    AIFallback,
    AIReply,
    ChatOrchestrator,
    GeminiClient,
    build_financial_context,
    extract_text,
)

expenses = [
    {"name": "Coffee", "amount": 120, "category": "food"},
    {"name": "Metro card", "amount": 500, "category": "transport"},
    {"name": "Groceries", "amount": 1380, "category": "food"},
]
facts = StatisticsAggregator().summarize(10000, 5000, expenses)


class StubClient:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.prompts = []

    def generate(self, prompt, api_key=None):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.result


class StubResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self.reason = "error" if not self.ok else "OK"
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


def test_financial_context_block():
    context = build_financial_context(facts, expenses, currency="₹")
    assert context == (
        "User Financial Summary:\n"
        "- Monthly Income: ₹10000\n"
        "- Savings Goal: ₹5000\n"
        "- Current Month Expenses: ₹2000\n"
        "- Amount Saved: ₹8000\n"
        "- Savings Rate: 80.0%\n"
        "- Recent Expenses: Coffee: ₹120 (food), Metro card: ₹500 (transport), Groceries: ₹1380 (food)"
    )


def test_financial_context_keeps_five_expenses():
    many = [{"name": f"item{i}", "amount": i + 1, "category": "misc"} for i in range(8)]
    context = build_financial_context(facts, many)
    assert "item4" in context
    assert "item5" not in context


def test_success_returns_ai_text():
    client = StubClient(result=AIReply("Spend less on coffee."))
    answer = ChatOrchestrator(client=client, currency="").answer("How do I save?", facts, expenses)
    assert answer == "Spend less on coffee."
    assert "User's question: How do I save?" in client.prompts[0]
    assert "- Monthly Income: 10000" in client.prompts[0]


def test_empty_text_returns_apology():
    client = StubClient(result=AIReply(None))
    answer = ChatOrchestrator(client=client, currency="").answer("hi", facts, expenses)
    assert answer == APOLOGY_MESSAGE


def test_fallback_matches_advisor():
    client = StubClient(result=AIFallback("HTTP 503"))
    answer = ChatOrchestrator(client=client, currency="₹").answer("budget help", facts, expenses)
    assert answer == generate_advice("budget help", facts, expenses, currency="₹")


def test_client_exception_falls_back():
    client = StubClient(error=RuntimeError("boom"))
    answer = ChatOrchestrator(client=client, currency="").answer("invest", facts, expenses)
    assert answer == generate_advice("invest", facts, expenses)


def test_extract_text_shapes():
    assert extract_text({"candidates": [{"content": {"parts": [{"text": "  hi  "}]}}]}) == "hi"
    assert extract_text({"candidates": [{"output_text": "alt"}]}) == "alt"
    assert extract_text({"candidates": [{"content": {"text": "inline"}}]}) == "inline"
    assert extract_text({"candidates": [{"content": {"parts": [{"text": "   "}]}}]}) is None
    assert extract_text({"candidates": []}) is None
    assert extract_text({"promptFeedback": {"blockReason": "SAFETY"}}) is None
    assert extract_text(["not", "a", "dict"]) is None


def test_gemini_request_shape(monkeypatch):
    calls = {}

    def fake_post(url, params=None, json=None, timeout=None):
        calls.update(url=url, params=params, json=json, timeout=timeout)
        return StubResponse(payload={"candidates": [{"content": {"parts": [{"text": "ok"}]}}]})

    monkeypatch.setattr(requests, "post", fake_post)
    client = GeminiClient(api_key="k", model="gemini-test", base_url="https://ai.example/v1/", timeout=3)

    assert client.generate("prompt") == AIReply("ok")
    assert calls["url"] == "https://ai.example/v1/models/gemini-test:generateContent"
    assert calls["params"] == {"key": "k"}
    assert calls["timeout"] == 3
    assert calls["json"]["contents"] == [{"parts": [{"text": "prompt"}]}]
    assert calls["json"]["generationConfig"]["maxOutputTokens"] == client.max_output_tokens


def test_gemini_user_key_overrides(monkeypatch):
    seen = []

    def fake_post(url, params=None, json=None, timeout=None):
        seen.append(params["key"])
        return StubResponse(payload={"candidates": [{"content": {"parts": [{"text": "  "}]}}]})

    monkeypatch.setattr(requests, "post", fake_post)
    assert GeminiClient(api_key="server").generate("p", api_key="personal") == AIReply(None)
    assert seen == ["personal"]


def test_gemini_without_key_falls_back(monkeypatch):
    def fail_post(*args, **kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr(requests, "post", fail_post)
    assert isinstance(GeminiClient(api_key="").generate("p"), AIFallback)


def test_gemini_timeout_falls_back(monkeypatch):
    def timeout_post(*args, **kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(requests, "post", timeout_post)
    assert isinstance(GeminiClient(api_key="k").generate("p"), AIFallback)


def test_gemini_error_status_falls_back(monkeypatch):
    monkeypatch.setattr(
        requests,
        "post",
        lambda *a, **kw: StubResponse(status_code=429, payload={"error": {"message": "quota"}}),
    )
    assert GeminiClient(api_key="k").generate("p") == AIFallback("HTTP 429")


def test_gemini_bad_json_falls_back(monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *a, **kw: StubResponse(invalid_json=True))
    assert isinstance(GeminiClient(api_key="k").generate("p"), AIFallback)


def test_gemini_unusable_shapes_fall_back(monkeypatch):
    shapes = [
        ["not", "an", "object"],
        {},
        {"candidates": "x"},
        {"candidates": []},
        {"candidates": ["x"]},
    ]
    for shape in shapes:
        monkeypatch.setattr(requests, "post", lambda *a, shape=shape, **kw: StubResponse(payload=shape))
        assert GeminiClient(api_key="k").generate("p") == AIFallback("unusable response shape")


def test_gemini_odd_error_bodies_fall_back(monkeypatch):
    for body in (["quota"], {"error": "quota"}, {"error": {"message": 3}}):
        monkeypatch.setattr(
            requests, "post", lambda *a, body=body, **kw: StubResponse(status_code=500, payload=body)
        )
        assert GeminiClient(api_key="k").generate("p") == AIFallback("HTTP 500")


def test_orchestrator_end_to_end_timeout(monkeypatch):
    def timeout_post(*args, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(requests, "post", timeout_post)
    orchestrator = ChatOrchestrator(client=GeminiClient(api_key="k"), currency="")
    assert orchestrator.answer("debt", facts, expenses) == generate_advice("debt", facts, expenses)
