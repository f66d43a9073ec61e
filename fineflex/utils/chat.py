"""
Chat Orchestrator
Asks Gemini for advice on the user's finances and falls back to the
rule-based advisor when the call can't produce an answer.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import requests

from fineflex.core.config import settings
from fineflex.utils.advisor import format_amount, generate_advice
from fineflex.utils.analyzer import StatisticsSnapshot, savings_rate

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "Sorry, I couldn't generate a complete response this time. "
    "Try rephrasing your question!"
)
MAX_CONTEXT_EXPENSES = 5


@dataclass(frozen=True)
class AIReply:
    """The service answered. `text` is None when no usable text was found."""

    text: Optional[str]


@dataclass(frozen=True)
class AIFallback:
    """The service couldn't be used; the advisor answers instead."""

    reason: str


AIResult = Union[AIReply, AIFallback]


def build_financial_context(
    facts: StatisticsSnapshot,
    expenses: Sequence[Mapping[str, Any]],
    currency: str = "",
) -> str:
    recent = ", ".join(
        f"{exp.get('name')}: {format_amount(exp.get('amount'), currency)} ({exp.get('category')})"
        for exp in list(expenses)[:MAX_CONTEXT_EXPENSES]
    )
    return (
        "User Financial Summary:\n"
        f"- Monthly Income: {format_amount(facts.monthly_income, currency)}\n"
        f"- Savings Goal: {format_amount(facts.savings_goal, currency)}\n"
        f"- Current Month Expenses: {format_amount(facts.total_expenses, currency)}\n"
        f"- Amount Saved: {format_amount(facts.saved_amount, currency)}\n"
        f"- Savings Rate: {savings_rate(facts):.1f}%\n"
        f"- Recent Expenses: {recent}"
    )


def build_prompt(context: str, question: str) -> str:
    return (
        "You are FineFlex AI, a helpful financial advisor.\n"
        "Use this financial context to give personalized advice:\n"
        f"{context}\n"
        "\n"
        "Be concise, friendly, and focus on practical, actionable tips.\n"
        f"User's question: {question}"
    )


def first_candidate(payload: Any) -> Optional[Dict[str, Any]]:
    """The first entry of `candidates`, or None when the body is not shaped like a generateContent response."""
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    return first if isinstance(first, dict) else None


def error_message(payload: Any) -> Optional[str]:
    """`error.message` from an API error body, when present."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return message if isinstance(message, str) else None
    return error if isinstance(error, str) else None


def extract_text(payload: Any) -> Optional[str]:
    """First candidate's text from a generateContent response, if any."""
    first = first_candidate(payload)
    if first is None:
        return None

    content = first.get("content")
    options = []
    if isinstance(content, dict):
        parts = content.get("parts")
        if isinstance(parts, list) and parts and isinstance(parts[0], dict):
            options.append(parts[0].get("text"))
    options.append(first.get("output_text"))
    if isinstance(content, dict):
        options.append(content.get("text"))

    for text in options:
        if isinstance(text, str) and text.strip():
            return text.strip()
    return None


class GeminiClient:
    """Single-shot client for the Gemini generateContent endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_API_URL).rstrip("/")
        self.temperature = settings.GEMINI_TEMPERATURE if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or settings.GEMINI_MAX_OUTPUT_TOKENS
        self.timeout = timeout or settings.GEMINI_TIMEOUT_SECONDS

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_body(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

    def generate(self, prompt: str, api_key: Optional[str] = None) -> AIResult:
        key = api_key or self.api_key
        if not key:
            return AIFallback("Gemini API key not configured")

        try:
            response = requests.post(
                self.endpoint,
                params={"key": key},
                json=self.build_body(prompt),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Gemini request failed: {e}")
            return AIFallback(f"transport error: {e}")

        if not response.ok:
            try:
                message = error_message(response.json())
            except ValueError:
                message = None
            logger.error(f"Gemini API error {response.status_code}: {message or response.reason}")
            return AIFallback(f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Gemini returned a non-JSON body: {e}")
            return AIFallback("malformed response body")

        if first_candidate(payload) is None:
            logger.error(f"Gemini response has no usable candidate: {payload}")
            return AIFallback("unusable response shape")

        text = extract_text(payload)
        if text is None:
            logger.warning(f"Gemini gave no text. Full response: {payload}")
        return AIReply(text)


class ChatOrchestrator:
    """
    Answers a chat question from the user's monthly facts.

    One AI attempt, no retries. Any failure ends in the advisor's reply, so
    callers always get text back.
    """

    def __init__(self, client: Optional[GeminiClient] = None, currency: Optional[str] = None) -> None:
        self.client = client or GeminiClient()
        self.currency = settings.CURRENCY_SYMBOL if currency is None else currency

    def answer(
        self,
        question: str,
        facts: StatisticsSnapshot,
        expenses: Sequence[Mapping[str, Any]],
        api_key: Optional[str] = None,
    ) -> str:
        expenses = list(expenses)[:MAX_CONTEXT_EXPENSES]
        context = build_financial_context(facts, expenses, self.currency)

        try:
            result = self.client.generate(build_prompt(context, question), api_key=api_key)
        except Exception as e:
            logger.error(f"Unexpected error from AI client: {e}", exc_info=True)
            result = AIFallback(str(e))

        if isinstance(result, AIFallback):
            logger.info(f"Using fallback advisor: {result.reason}")
            return generate_advice(question, facts, expenses, self.currency)
        return result.text or APOLOGY_MESSAGE
