import os

from devil_muse.core.settings import CoreSettings, RuntimeSettings


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except Exception:
        return default


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except Exception:
        return default


def _parse_csv(value: str | None) -> list[str]:
    if value is None:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _stringify_env_default(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


PROFILE_ALIASES = {
    "dev": "local-dev",
    "local": "local-dev",
    "default": "local-dev",
    "prod": "production",
}


PROFILE_DEFAULTS = {
    "local-dev": {
        "LLM_TIMEOUT_SECONDS": 90,
        "CMS_TIMEOUT_SECONDS": 10,
        "LOG_LEVEL": "DEBUG",
    },
    "production": {
        "LLM_TIMEOUT_SECONDS": 60,
        "CMS_TIMEOUT_SECONDS": 5,
        "LOG_LEVEL": "INFO",
    },
}


DEFAULT_LLM_MODELS = (
    "deepseek/deepseek-chat-v3.1",
    "deepseek/deepseek-v3.2",
    "mistralai/mistral-large",
)


def _resolve_profile(raw_profile: str) -> str:
    candidate = PROFILE_ALIASES.get(raw_profile, raw_profile)
    if candidate in PROFILE_DEFAULTS:
        return candidate
    return "local-dev"


def _apply_profile_defaults() -> str:
    profile = os.getenv("CONFIG_PROFILE", "local-dev").strip().lower()
    resolved_profile = _resolve_profile(profile)
    os.environ.setdefault("CONFIG_PROFILE", resolved_profile)

    for key, value in PROFILE_DEFAULTS[resolved_profile].items():
        os.environ.setdefault(key, _stringify_env_default(value))

    return resolved_profile


_ACTIVE_CONFIG_PROFILE = _apply_profile_defaults()


class Settings:
    """Process-wide configuration, read once from the environment at startup."""

    def __init__(self) -> None:
        self.config_profile = _ACTIVE_CONFIG_PROFILE
        self.core = CoreSettings(self)
        self.runtime = RuntimeSettings(self)

    openrouter_api_key = os.getenv("OPENROUTER_API_KEY", "")
    openrouter_base_url = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    llm_models = _parse_csv(os.getenv("LLM_MODELS")) or list(DEFAULT_LLM_MODELS)
    llm_analysis_model = os.getenv("LLM_ANALYSIS_MODEL", "openai/gpt-3.5-turbo")
    llm_analysis_temperature = _parse_float(os.getenv("LLM_ANALYSIS_TEMPERATURE"), 0.3)
    llm_tag_model = os.getenv("LLM_TAG_MODEL", "openai/gpt-4.1-mini")
    llm_timeout_seconds = max(_parse_float(os.getenv("LLM_TIMEOUT_SECONDS"), 60.0), 1.0)
    llm_http_referer = os.getenv(
        "LLM_HTTP_REFERER",
        "https://amygonzalez305.wixsite.com/the-draft-reaper/devil-muse-server",
    )
    llm_app_title = os.getenv("LLM_APP_TITLE", "Devil Muse")

    wix_api_key = os.getenv("WIX_API_KEY", "")
    wix_site_id = os.getenv("WIX_SITE_ID", "")
    wix_account_id = os.getenv("WIX_ACCOUNT_ID", "")
    wix_base_url = os.getenv("WIX_BASE_URL", "https://www.wixapis.com")
    wix_query_path = os.getenv("WIX_QUERY_PATH", "/wix-data/v2/items/query")
    cms_timeout_seconds = max(_parse_float(os.getenv("CMS_TIMEOUT_SECONDS"), 10.0), 0.5)

    host = os.getenv("HOST", "0.0.0.0")
    port = _parse_int(os.getenv("PORT"), 3333)
    cors_allow_origins = _parse_csv(os.getenv("CORS_ALLOW_ORIGINS")) or ["*"]
    action_strict_mode = _parse_bool(os.getenv("ACTION_STRICT_MODE"), False)
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"


settings = Settings()
