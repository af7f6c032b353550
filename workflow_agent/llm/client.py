"""LLM client abstraction for different providers."""
import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import requests

from workflow_agent.config import (
    GEMINI_API_KEY,
    LLM_MODEL,
    LLM_PROVIDER,
    LLM_TIMEOUT,
    OLLAMA_API_KEY,
    OLLAMA_HOST,
    OPENAI_API_KEY,
)

logger = logging.getLogger(__name__)

Message = Dict[str, str]
# (delta text, model reported by the provider if any)
Chunk = Tuple[str, Optional[str]]


class LLMError(Exception):
    """Raised when the completion service is unreachable or fails after retrying."""


@dataclass(frozen=True)
class Completion:
    text: str
    model: str


class CompletionStream:
    """Iterable of text deltas from a streaming completion.

    ``model`` starts as the configured model and is replaced by the identifier
    the provider reports as chunks arrive. ``text`` holds everything yielded so far.
    """

    def __init__(self, chunks: Iterator[Chunk], model: str):
        self._chunks = chunks
        self._parts: List[str] = []
        self.model = model

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def __iter__(self) -> Iterator[str]:
        try:
            for delta, model in self._chunks:
                if model:
                    self.model = model
                if delta:
                    self._parts.append(delta)
                    yield delta
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"Completion stream failed: {e}") from e


def _split_messages(messages: List[Message]) -> Tuple[str, str]:
    system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
    user = "\n\n".join(m["content"] for m in messages if m["role"] != "system")
    return system, user


class LLMClient:
    """Abstracted LLM client supporting google, openai and ollama."""

    MAX_RETRIES = 1  # Exactly one retry for transient failures
    RETRY_DELAY = 0.5
    TEMPERATURE = 0.3
    MAX_OUTPUT_TOKENS = 2048

    def __init__(
        self,
        provider: str = LLM_PROVIDER,
        model: str = LLM_MODEL,
        timeout: float = LLM_TIMEOUT,
    ):
        self.provider = provider.lower()
        self.model = model
        self.timeout = timeout

    def complete(self, messages: List[Message]) -> Completion:
        """
        Run one completion over role-tagged messages.

        Args:
            messages: ``{"role": "system" | "user", "content": str}`` in order

        Returns:
            Completion with the generated text and the model that produced it

        Raises:
            LLMError: If the provider fails twice or is not supported
        """
        return self._with_retry(
            lambda: self._dispatch(messages, stream=False),
            "completion",
        )

    def stream(self, messages: List[Message]) -> CompletionStream:
        """
        Open a streaming completion. Only opening the stream is retried;
        a failure halfway through surfaces as LLMError while iterating.
        """
        chunks = self._with_retry(
            lambda: self._dispatch(messages, stream=True),
            "streaming completion",
        )
        return CompletionStream(chunks, self.model)

    def _with_retry(self, call: Callable, label: str):
        last_error: Optional[Exception] = None
        for attempt in range(self.MAX_RETRIES + 1):
            try:
                return call()
            except LLMError:
                raise
            except Exception as e:
                last_error = e
                if attempt < self.MAX_RETRIES:
                    logger.warning("LLM %s attempt %d failed, retrying: %s", label, attempt + 1, e)
                    time.sleep(self.RETRY_DELAY)
                    continue
        raise LLMError(
            f"LLM {label} failed after {self.MAX_RETRIES + 1} attempts: {last_error}"
        ) from last_error

    def _dispatch(self, messages: List[Message], stream: bool):
        if self.provider == "google":
            return self._stream_google(messages) if stream else self._generate_google(messages)
        if self.provider == "openai":
            return self._stream_openai(messages) if stream else self._generate_openai(messages)
        if self.provider == "ollama":
            return self._stream_ollama(messages) if stream else self._generate_ollama(messages)
        raise LLMError(f"Unsupported LLM provider: {self.provider}")

    # ---- google ----

    def _get_model_candidates(self) -> List[str]:
        """Ordered Gemini models for rate-limit fallback; the configured model is tried first."""
        candidates = [self.model] if self.model else []
        for name in ("gemini-2.5-flash", "gemini-2.5-flash-lite"):
            if name not in candidates:
                candidates.append(name)
        return candidates

    @staticmethod
    def _is_rate_limit_error(error: Exception) -> bool:
        """Heuristically detect rate-limit / quota errors."""
        msg = str(error).lower()
        return "429" in msg or "rate limit" in msg or "quota" in msg or "exceeded" in msg

    def _gemini_model(self, model_name: str, system_prompt: str):
        import google.generativeai as genai

        if not GEMINI_API_KEY:
            raise LLMError("GEMINI_API_KEY not set for Google provider")
        genai.configure(api_key=GEMINI_API_KEY)
        return genai.GenerativeModel(
            model_name=model_name,
            generation_config={
                "temperature": self.TEMPERATURE,
                "top_p": 0.95,
                "top_k": 40,
                "max_output_tokens": self.MAX_OUTPUT_TOKENS,
            },
            system_instruction=system_prompt or None,
        )

    @staticmethod
    def _gemini_text(response) -> str:
        # .text raises ValueError when the candidate carries no parts (e.g. blocked output)
        try:
            return response.text or ""
        except ValueError:
            return ""

    def _generate_google(self, messages: List[Message]) -> Completion:
        """Generate using Google Gemini with rate-limit-aware model fallback."""
        system_prompt, prompt = _split_messages(messages)
        last_error: Optional[Exception] = None
        for model_name in self._get_model_candidates():
            try:
                response = self._gemini_model(model_name, system_prompt).generate_content(
                    prompt,
                    request_options={"timeout": self.timeout},
                )
            except LLMError:
                raise
            except Exception as e:
                last_error = e
                if self._is_rate_limit_error(e):
                    logger.warning("Gemini model %s hit a rate limit, trying next candidate", model_name)
                    continue
                raise
            if model_name != self.model:
                logger.info("Answered with fallback Gemini model %s instead of %s", model_name, self.model)
            return Completion(text=self._gemini_text(response), model=model_name)
        raise LLMError(f"All Gemini model candidates failed. Last error: {last_error}")

    def _stream_google(self, messages: List[Message]) -> Iterator[Chunk]:
        system_prompt, prompt = _split_messages(messages)
        model_name = self.model
        response = self._gemini_model(model_name, system_prompt).generate_content(
            prompt,
            stream=True,
            request_options={"timeout": self.timeout},
        )

        def chunks():
            for chunk in response:
                yield self._gemini_text(chunk), model_name

        return chunks()

    # ---- openai ----

    def _openai_client(self):
        from openai import OpenAI

        if not OPENAI_API_KEY:
            raise LLMError("OPENAI_API_KEY not set for OpenAI provider")
        return OpenAI(api_key=OPENAI_API_KEY, timeout=self.timeout)

    def _generate_openai(self, messages: List[Message]) -> Completion:
        response = self._openai_client().chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_OUTPUT_TOKENS,
        )
        text = response.choices[0].message.content if response.choices else ""
        return Completion(text=text or "", model=response.model or self.model)

    def _stream_openai(self, messages: List[Message]) -> Iterator[Chunk]:
        response = self._openai_client().chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_OUTPUT_TOKENS,
            stream=True,
        )

        def chunks():
            for chunk in response:
                delta = chunk.choices[0].delta.content if chunk.choices else None
                yield delta or "", chunk.model

        return chunks()

    # ---- ollama ----

    def _ollama_post(self, messages: List[Message], stream: bool) -> requests.Response:
        headers = {"Content-Type": "application/json"}
        if OLLAMA_API_KEY:
            headers["Authorization"] = f"Bearer {OLLAMA_API_KEY}"
        response = requests.post(
            f"{OLLAMA_HOST}/api/chat",
            headers=headers,
            json={
                "model": self.model,
                "messages": messages,
                "stream": stream,
                "options": {"temperature": self.TEMPERATURE},
            },
            timeout=self.timeout,
            stream=stream,
        )
        response.raise_for_status()
        return response

    def _generate_ollama(self, messages: List[Message]) -> Completion:
        payload = self._ollama_post(messages, stream=False).json()
        message = payload.get("message") or {}
        return Completion(
            text=message.get("content") or "",
            model=payload.get("model") or self.model,
        )

    def _stream_ollama(self, messages: List[Message]) -> Iterator[Chunk]:
        response = self._ollama_post(messages, stream=True)

        def chunks():
            with response:
                for line in response.iter_lines():
                    if not line:
                        continue
                    payload = json.loads(line)
                    if payload.get("error"):
                        raise LLMError(f"Ollama stream error: {payload['error']}")
                    message = payload.get("message") or {}
                    yield message.get("content") or "", payload.get("model")
                    if payload.get("done"):
                        break

        return chunks()
