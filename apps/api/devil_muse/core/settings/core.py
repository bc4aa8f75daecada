from __future__ import annotations

from typing import Any


class CoreSettings:
    """Proxy view for LLM provider settings on root Settings."""

    FIELD_NAMES: tuple[str, ...] = (
        "openrouter_api_key",
        "openrouter_base_url",
        "llm_models",
        "llm_analysis_model",
        "llm_analysis_temperature",
        "llm_tag_model",
        "llm_timeout_seconds",
        "llm_http_referer",
        "llm_app_title",
    )

    def __init__(self, root: Any) -> None:
        object.__setattr__(self, "_root", root)

    def __getattr__(self, name: str) -> Any:
        if name in self.FIELD_NAMES:
            return getattr(self._root, name)
        raise AttributeError(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.FIELD_NAMES:
            setattr(self._root, name, value)
            return
        object.__setattr__(self, name, value)
