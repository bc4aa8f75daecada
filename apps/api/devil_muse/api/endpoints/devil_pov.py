import logging
import time
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from devil_muse.core.config import settings
from devil_muse.schemas.devil_pov import DevilPovRequest, DevilPovResponse, ErrorEnvelope
from devil_muse.services.actions import (
    DEFAULT_ACTION,
    ActionDependencies,
    UnknownActionError,
    resolve_action,
    run_action,
)
from devil_muse.services.cms_client import WixDataClient
from devil_muse.services.context_fetchers import ContextFetcher
from devil_muse.services.llm_provider import ModelFallbackCaller, SingleModelCaller

_LOGGER = logging.getLogger(__name__)

router = APIRouter()


def get_action_dependencies() -> ActionDependencies:
    return ActionDependencies(
        caller=ModelFallbackCaller.from_settings(settings),
        analysis_caller=SingleModelCaller.analysis_from_settings(settings),
        tag_caller=SingleModelCaller.tagging_from_settings(settings),
        context=ContextFetcher(WixDataClient.from_settings(settings)),
    )


def _result_size(result: Any) -> int:
    if isinstance(result, (str, list)):
        return len(result)
    if isinstance(result, dict):
        return len(str(result.get("tag", "")))
    return 0


def _error_response(status_code: int, label: str, exc: Exception) -> JSONResponse:
    envelope = ErrorEnvelope(error=f"{label} failed", details=str(exc))
    return JSONResponse(status_code=status_code, content=envelope.model_dump())


@router.post(
    "/devil-pov",
    response_model=DevilPovResponse,
    responses={400: {"model": ErrorEnvelope}, 500: {"model": ErrorEnvelope}},
)
async def devil_pov(
    payload: DevilPovRequest,
    deps: ActionDependencies = Depends(get_action_dependencies),
):
    started = time.perf_counter()
    label = DEFAULT_ACTION.value if payload.action in (None, "") else str(payload.action)
    try:
        action = resolve_action(payload.action, strict=settings.action_strict_mode)
    except UnknownActionError as exc:
        _LOGGER.warning("rejected action=%s", payload.action)
        return _error_response(400, label, exc)

    _LOGGER.info("action=%s handler=%s", label, action.value)
    try:
        result = await run_action(action, payload.model_dump(), deps)
    except Exception as exc:
        _LOGGER.exception("action=%s failed with %s", label, type(exc).__name__)
        return _error_response(500, label, exc)

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    _LOGGER.info("action=%s completed in %dms", label, elapsed_ms)
    return DevilPovResponse(
        status="success",
        result=result,
        charsGenerated=_result_size(result),
        processingTime=elapsed_ms,
    )
