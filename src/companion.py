"""
Conversational Companion
========================
Supportive chat replies and short encouragement notes.

Providers implement generate(prompt) -> str and raise ProviderError on
authentication, network, quota or malformed-response failures:

  GeminiProvider    Google Generative Language REST API (requests + retry)
  CrewLLMProvider   crewai LLM wrapper (litellm model strings)

SupportiveCompanion never lets a ProviderError reach the user; it answers
with a fixed supportive fallback instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Protocol, Sequence

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import get_ai_provider, get_gemini_api_key, get_gemini_model

log = logging.getLogger("companion")

GREETING = (
    "Hello! I'm your AI mental health companion. I'm here to listen, provide support, "
    "and offer gentle guidance. How are you feeling today?"
)
FALLBACK_REPLY = (
    "I'm sorry, I'm having trouble responding right now. Please try again or contact "
    "a mental health professional if you need immediate support."
)
LISTENING_REPLY = "I'm here to listen. Can you tell me more about what you're experiencing?"

SYSTEM_PROMPT = (
    "You are a compassionate AI mental health companion. Provide supportive, empathetic "
    "responses that offer gentle guidance and coping strategies. Always encourage "
    "professional help when needed. Keep responses warm, understanding, and helpful. "
    "If someone seems in crisis, gently suggest they contact emergency services or a "
    "crisis helpline."
)

QUICK_PROMPTS = [
    "I'm feeling anxious",
    "I can't sleep",
    "I'm feeling overwhelmed",
    "I need motivation",
    "I'm having a bad day",
    "I need coping strategies",
]

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
HISTORY_TURNS = 10


class ProviderError(RuntimeError):
    """A completion backend could not produce text."""


class CompletionProvider(Protocol):
    def generate(self, prompt: str) -> str: ...


@dataclass
class ChatMessage:
    content: str
    is_ai: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ─── Providers ──────────────────────────────────────────────

class GeminiProvider:
    """Calls generateContent on the Gemini REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 500,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else get_gemini_api_key()
        self.model = model or get_gemini_model()
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self.session = session or requests.Session()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        reraise=True,
    )
    def _post(self, payload: dict) -> requests.Response:
        """POST with retry + exponential backoff on transient network errors."""
        return self.session.post(
            GEMINI_URL.format(model=self.model),
            params={"key": self.api_key},
            json=payload,
            timeout=self.timeout,
        )

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise ProviderError("AI service is not configured (GEMINI_API_KEY missing)")

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        try:
            response = self._post(payload)
        except requests.RequestException as e:
            raise ProviderError(f"Gemini request failed: {e}") from e

        if response.status_code in (401, 403):
            raise ProviderError("AI service authentication failed")
        if response.status_code == 429:
            raise ProviderError("AI service quota exceeded")
        if not response.ok:
            raise ProviderError(f"Gemini API error: HTTP {response.status_code}")

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            log.warning("Gemini returned no candidate text")
            return ""
        if not isinstance(text, str):
            log.warning("Gemini returned non-text content: %r", text)
            return ""
        return text


class CrewLLMProvider:
    """Routes prompts through crewai's LLM wrapper."""

    def __init__(self, model: str = "gemini/gemini-2.5-flash", api_key: Optional[str] = None,
                 temperature: float = 0.7):
        self.model = model
        self.api_key = api_key if api_key is not None else get_gemini_api_key()
        self.temperature = temperature
        self._llm = None

    def _get_llm(self):
        if self._llm is None:
            from crewai import LLM

            self._llm = LLM(model=self.model, api_key=self.api_key, temperature=self.temperature)
        return self._llm

    def generate(self, prompt: str) -> str:
        try:
            out = self._get_llm().call(prompt)
        except Exception as e:
            raise ProviderError(f"LLM call failed: {e}") from e
        return str(out or "")


def build_provider(kind: Optional[str] = None) -> Optional[CompletionProvider]:
    """Provider selected by WELLNESS_AI_PROVIDER (gemini|crewai|none)."""
    kind = (kind or get_ai_provider()).lower()
    if kind == "gemini":
        return GeminiProvider()
    if kind == "crewai":
        return CrewLLMProvider()
    if kind == "none":
        return None
    raise ValueError(f"Unknown AI provider: {kind!r} (expected gemini, crewai or none)")


# ─── Companion ──────────────────────────────────────────────

def build_chat_prompt(prior_messages: Sequence[ChatMessage], new_user_text: str) -> str:
    lines = [SYSTEM_PROMPT, ""]
    history = [m for m in prior_messages if m.content.strip()][-HISTORY_TURNS:]
    if history:
        lines.append("Conversation so far:")
        for msg in history:
            who = "Companion" if msg.is_ai else "User"
            lines.append(f"{who}: {msg.content.strip()}")
        lines.append("")
    lines.append(f"User message: {new_user_text.strip()}")
    return "\n".join(lines)


class SupportiveCompanion:
    """Chat front for a CompletionProvider with a safe fallback."""

    def __init__(self, provider: Optional[CompletionProvider] = None):
        self.provider = provider

    def reply(self, prior_messages: Sequence[ChatMessage], new_user_text: str) -> str:
        if not new_user_text or not new_user_text.strip():
            raise ValueError("message is required")
        if self.provider is None:
            return FALLBACK_REPLY
        try:
            text = self.provider.generate(build_chat_prompt(prior_messages, new_user_text))
        except ProviderError as e:
            log.warning("Companion provider failed: %s", e)
            return FALLBACK_REPLY
        return str(text or "").strip() or LISTENING_REPLY

    def converse(self, transcript: List[ChatMessage], new_user_text: str) -> ChatMessage:
        """Append the user turn and the reply to transcript; return the reply."""
        answer = self.reply(transcript, new_user_text)
        transcript.append(ChatMessage(content=new_user_text, is_ai=False))
        reply = ChatMessage(content=answer, is_ai=True)
        transcript.append(reply)
        return reply

    def supportive_note(self, analysis: str) -> Optional[str]:
        """One or two encouraging sentences for an analysis; None on failure."""
        if self.provider is None:
            return None
        prompt = (
            f"{SYSTEM_PROMPT}\n\n"
            "Here is a summary of the user's recent mood and sleep check-ins:\n"
            f"{analysis}\n\n"
            "Write one or two short, warm sentences of encouragement. Do not give medical advice."
        )
        try:
            text = str(self.provider.generate(prompt) or "").strip()
        except ProviderError as e:
            log.warning("Supportive note skipped: %s", e)
            return None
        return text or None
