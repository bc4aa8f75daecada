from __future__ import annotations

from typing import Any


class RuntimeSettings:
    """Proxy view for CMS, server and CORS settings on root Settings."""

    FIELD_NAMES: tuple[str, ...] = (
        "wix_api_key",
        "wix_site_id",
        "wix_account_id",
        "wix_base_url",
        "wix_query_path",
        "cms_timeout_seconds",
        "host",
        "port",
        "cors_allow_origins",
        "action_strict_mode",
        "log_level",
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
