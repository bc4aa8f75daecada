from contextlib import asynccontextmanager
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devil_muse.api.router import api_router
from devil_muse.core.config import settings
from devil_muse.core.logging_setup import configure_logging

logger = logging.getLogger("devil_muse.startup")


def _emit_startup_notice() -> None:
    if not str(settings.openrouter_api_key or "").strip():
        logger.warning("OPENROUTER_API_KEY is empty. Every generation action will fail with a configuration error.")
    missing_wix = [
        name
        for name, value in (
            ("WIX_API_KEY", settings.wix_api_key),
            ("WIX_SITE_ID", settings.wix_site_id),
            ("WIX_ACCOUNT_ID", settings.wix_account_id),
        )
        if not str(value or "").strip()
    ]
    if missing_wix:
        logger.warning("%s not set. CMS lookups will return empty context.", ", ".join(missing_wix))
    logger.info("profile=%s models=%s", settings.config_profile, ", ".join(settings.llm_models))


@asynccontextmanager
async def lifespan(_: FastAPI):
    _emit_startup_notice()
    yield


app = FastAPI(title="devil-muse-api", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router)


@app.get("/health")
def health():
    return {
        "ok": True,
        "models": list(settings.llm_models),
        "apiKeyConfigured": bool(str(settings.openrouter_api_key or "").strip()),
    }


def run() -> None:
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
