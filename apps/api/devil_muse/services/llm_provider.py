import logging
from typing import Any, Sequence

import httpx


_LOGGER = logging.getLogger(__name__)

ANALYSIS_TITLE_SUFFIX = "Manuscript Analysis"
TAG_TITLE_SUFFIX = "Tag Janitor"


class LLMConfigurationError(RuntimeError):
    """Raised before any network call when the provider credential is missing."""


class LLMGenerationError(RuntimeError):
    """Raised when a completion could not be produced."""


class AllModelsFailedError(LLMGenerationError):
    pass


def _truncate_text(text: str, max_chars: int) -> str:
    content = (text or "").strip()
    if len(content) <= max_chars:
        return content
    return content[:max_chars].rstrip() + "..."


def _extract_message_content(data: Any) -> str:
    if not isinstance(data, dict):
        raise LLMGenerationError("completion payload is not an object")
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise LLMGenerationError("completion payload has no choices")
    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise LLMGenerationError("completion payload has no message content")
    return content


class _OpenRouterChatClient:
    """Shared request plumbing for OpenAI-compatible chat completions."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        referer: str,
        title: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = str(api_key or "").strip()
        self.endpoint = str(base_url).rstrip("/") + "/chat/completions"
        self.referer = referer
        self.title = title
        self.timeout_seconds = float(timeout_seconds)
        self._transport = transport

    def _ensure_api_key(self) -> None:
        if not self.api_key:
            raise LLMConfigurationError("No API key configured")

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.referer,
            "X-Title": self.title,
        }

    def _client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(self.timeout_seconds)
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def _post_completion(
        self,
        client: httpx.AsyncClient,
        *,
        model: str,
        messages: Sequence[dict[str, Any]],
        temperature: float,
        max_tokens: int,
    ) -> httpx.Response:
        body = {
            "model": model,
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": int(max_tokens),
        }
        return await client.post(self.endpoint, json=body, headers=self._headers())


class ModelFallbackCaller(_OpenRouterChatClient):
    """Tries an ordered list of models once each; the first success wins."""

    def __init__(self, *, models: Sequence[str], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.models = [str(model).strip() for model in models if str(model or "").strip()]

    @classmethod
    def from_settings(cls, settings: Any, *, transport: httpx.AsyncBaseTransport | None = None) -> "ModelFallbackCaller":
        return cls(
            models=settings.llm_models,
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            referer=settings.llm_http_referer,
            title=settings.llm_app_title,
            timeout_seconds=settings.llm_timeout_seconds,
            transport=transport,
        )

    async def call(
        self,
        messages: Sequence[dict[str, Any]],
        temperature: float = 0.9,
        max_tokens: int = 2500,
    ) -> str:
        self._ensure_api_key()

        async with self._client() as client:
            for model in self.models:
                _LOGGER.info("trying model=%s", model)
                try:
                    resp = await self._post_completion(
                        client,
                        model=model,
                        messages=messages,
                        temperature=temperature,
                        max_tokens=max_tokens,
                    )
                except httpx.HTTPError as exc:
                    _LOGGER.warning("model=%s transport error: %s", model, exc)
                    continue

                if resp.status_code >= 400:
                    _LOGGER.warning(
                        "model=%s failed: %s %s",
                        model,
                        resp.status_code,
                        _truncate_text(resp.text, 300),
                    )
                    continue

                try:
                    content = _extract_message_content(resp.json())
                except (ValueError, LLMGenerationError) as exc:
                    _LOGGER.warning("model=%s returned an unusable payload: %s", model, exc)
                    continue

                _LOGGER.info("model=%s succeeded", model)
                return content

        _LOGGER.error("all models failed: %s", ", ".join(self.models))
        raise AllModelsFailedError("All models failed")


class SingleModelCaller(_OpenRouterChatClient):
    """One fixed model at a fixed temperature; any failure propagates."""

    def __init__(self, *, model: str, temperature: float, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.model = model
        self.temperature = float(temperature)

    @classmethod
    def analysis_from_settings(
        cls,
        settings: Any,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "SingleModelCaller":
        return cls(
            model=settings.llm_analysis_model,
            temperature=settings.llm_analysis_temperature,
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            referer=settings.llm_http_referer,
            title=f"{settings.llm_app_title} - {ANALYSIS_TITLE_SUFFIX}",
            timeout_seconds=settings.llm_timeout_seconds,
            transport=transport,
        )

    @classmethod
    def tagging_from_settings(
        cls,
        settings: Any,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "SingleModelCaller":
        return cls(
            model=settings.llm_tag_model,
            temperature=0.1,
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            referer=settings.llm_http_referer,
            title=f"{settings.llm_app_title} - {TAG_TITLE_SUFFIX}",
            timeout_seconds=settings.llm_timeout_seconds,
            transport=transport,
        )

    async def call(self, messages: Sequence[dict[str, Any]], max_tokens: int = 3000) -> str:
        self._ensure_api_key()
        _LOGGER.info("calling model=%s title=%s", self.model, self.title)

        async with self._client() as client:
            try:
                resp = await self._post_completion(
                    client,
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=max_tokens,
                )
            except httpx.HTTPError as exc:
                _LOGGER.error("model=%s transport error: %s", self.model, exc)
                raise LLMGenerationError(f"{self.model} request failed: {exc}") from exc

        if resp.status_code >= 400:
            detail = _truncate_text(resp.text, 300)
            _LOGGER.error("model=%s failed: %s %s", self.model, resp.status_code, detail)
            raise LLMGenerationError(f"{self.model} failed: {resp.status_code} {detail}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise LLMGenerationError(f"{self.model} returned non-JSON payload") from exc
        return _extract_message_content(payload)
