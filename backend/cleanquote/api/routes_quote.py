import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from cleanquote.dependencies import get_metrics, get_pricing_config
from cleanquote.domain.pricing.commission import get_add_ons_commission_percent, provider_share_percent
from cleanquote.domain.pricing.config_loader import PricingConfig
from cleanquote.domain.pricing.engine import compute_price
from cleanquote.domain.pricing.models import (
    MAX_BASE_PRICE,
    AddOnCatalogItem,
    AddOnCatalogResponse,
    PricingInputs,
    QuoteResponse,
)
from cleanquote.infra.metrics import Metrics

router = APIRouter(prefix="/api/pricing")
logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_error(exc: ValidationError) -> str:
    errors = exc.errors()
    for error in errors:
        loc = error.get("loc", ())
        if loc and loc[0] == "basePrice":
            if error.get("type") == "missing":
                return "basePrice is required"
            if error.get("type") == "less_than_equal":
                return f"basePrice must not exceed {MAX_BASE_PRICE:.0f}"
            return "basePrice must be a non-negative number"
    if not errors:
        return "Invalid request body"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


@router.post("/quote", response_model=QuoteResponse)
async def create_quote(
    request: Request,
    pricing_config: PricingConfig = Depends(get_pricing_config),
    metrics_client: Metrics = Depends(get_metrics),
):
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        metrics_client.record_quote("invalid")
        return _error_response(400, "Request body must be a JSON object")

    try:
        inputs = PricingInputs.model_validate(payload)
    except ValidationError as exc:
        message = _describe_validation_error(exc)
        metrics_client.record_quote("invalid")
        logger.info("quote_rejected", extra={"extra": {"reason": message}})
        return _error_response(400, message)

    try:
        quote = compute_price(inputs, pricing_config)
    except Exception:  # noqa: BLE001
        metrics_client.record_quote("error")
        logger.exception(
            "quote_failed",
            extra={"extra": {"pricing_config_version": pricing_config.pricing_config_version}},
        )
        return _error_response(500, "Failed to compute quote")

    metrics_client.record_quote("ok", quote.total)
    logger.info(
        "quote_computed",
        extra={
            "extra": {
                "pricing_config_version": quote.pricing_config_version,
                "config_hash": quote.config_hash,
                "total_cents": quote.cents.total,
            }
        },
    )
    return QuoteResponse(quote=quote)


@router.get("/add-ons", response_model=AddOnCatalogResponse)
async def list_add_ons(
    pricing_config: PricingConfig = Depends(get_pricing_config),
) -> AddOnCatalogResponse:
    items = [
        AddOnCatalogItem(
            id=item["id"],
            name=item["name"],
            base_price=float(item["base_price"]),
            category=item["category"],
            commission_percent=get_add_ons_commission_percent(pricing_config, item["category"]),
            provider_share_percent=provider_share_percent(pricing_config, item["category"]),
        )
        for item in pricing_config.data.get("add_on_catalog", [])
    ]
    return AddOnCatalogResponse(
        pricing_config_id=pricing_config.pricing_config_id,
        pricing_config_version=pricing_config.pricing_config_version,
        config_hash=pricing_config.config_hash,
        default_commission_percent=get_add_ons_commission_percent(pricing_config),
        items=items,
    )
