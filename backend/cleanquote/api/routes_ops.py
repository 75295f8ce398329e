import logging
import secrets

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from cleanquote.dependencies import get_pricing_config
from cleanquote.domain.pricing.config_loader import PricingConfigError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz() -> JSONResponse:
    try:
        pricing_config = get_pricing_config()
    except (FileNotFoundError, PricingConfigError) as exc:
        logger.warning("readiness_pricing_config_unavailable", extra={"extra": {"error": str(exc)}})
        return JSONResponse(status_code=503, content={"status": "unavailable", "pricing_config": "error"})
    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "pricing_config_id": pricing_config.pricing_config_id,
            "pricing_config_version": pricing_config.pricing_config_version,
            "config_hash": pricing_config.config_hash,
        },
    )


def _bearer_or_query_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1]
    return request.query_params.get("token")


@router.get("/metrics")
async def metrics_endpoint(request: Request) -> Response:
    metrics_client = getattr(request.app.state, "metrics", None)
    if metrics_client is None or not metrics_client.enabled:
        raise HTTPException(status_code=404, detail="Metrics disabled")

    app_settings = request.app.state.app_settings
    if app_settings.app_env == "prod":
        expected = app_settings.metrics_token
        if not expected:
            raise HTTPException(status_code=500, detail="Metrics token misconfigured")
        provided = _bearer_or_query_token(request)
        if not provided or not secrets.compare_digest(provided, expected):
            raise HTTPException(status_code=401, detail="Unauthorized")

    payload, content_type = metrics_client.render()
    return Response(content=payload, media_type=content_type)
