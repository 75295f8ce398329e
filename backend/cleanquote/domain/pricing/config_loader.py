import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = (
    "surge",
    "off_peak",
    "complexity",
    "seasonal_multipliers",
    "distance",
    "rush_tiers",
    "recurring_discounts",
    "cart_discount_tiers",
    "service_fee_pct",
    "tax",
    "limits",
    "add_ons_commission",
)
LIMIT_KEYS = ("max_addons_total", "max_distance_km", "max_per_km_after_free")
MAX_MULTIPLIER = 10.0
# Keeps every quantized line far inside the default 28-digit decimal context.
MAX_INPUT_LIMIT = 1_000_000_000.0


class PricingConfigError(ValueError):
    """Raised when a pricing document is structurally invalid."""


@dataclass(frozen=True)
class PricingConfig:
    pricing_config_id: str
    pricing_config_version: str
    config_hash: str
    data: Dict[str, Any]


def _canonical_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def _resolve_pricing_path(path: str) -> Path:
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    cwd_candidate = (Path.cwd() / candidate).resolve()
    if cwd_candidate.exists():
        return cwd_candidate
    module_candidate = Path(__file__).resolve().parents[3] / candidate
    if module_candidate.exists():
        return module_candidate
    raise FileNotFoundError(f"Pricing config not found at {path}")


def _check_rate(value: Any, name: str, *, upper: float = 1.0) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PricingConfigError(f"{name} must be a number")
    if value < 0 or value > upper:
        raise PricingConfigError(f"{name} must be between 0 and {upper}")


def validate_pricing_data(data: Dict[str, Any]) -> None:
    missing = [key for key in ("pricing_config_id", "pricing_config_version", *REQUIRED_SECTIONS) if key not in data]
    if missing:
        raise PricingConfigError(f"Pricing config missing keys: {', '.join(missing)}")

    seasonal = data["seasonal_multipliers"]
    if not isinstance(seasonal, list) or len(seasonal) != 12:
        raise PricingConfigError("seasonal_multipliers must list exactly 12 monthly factors")
    for index, factor in enumerate(seasonal, start=1):
        _check_rate(factor, f"seasonal_multipliers[{index}]", upper=MAX_MULTIPLIER)

    for section in ("surge", "complexity"):
        cap = data[section]["max_multiplier"]
        _check_rate(cap, f"{section}.max_multiplier", upper=MAX_MULTIPLIER)
        if cap < 1.0:
            raise PricingConfigError(f"{section}.max_multiplier must be at least 1.0")

    _check_rate(data["service_fee_pct"], "service_fee_pct")
    _check_rate(data["off_peak"]["multiplier"], "off_peak.multiplier")
    for frequency, rate in data["recurring_discounts"].items():
        _check_rate(rate, f"recurring_discounts.{frequency}")
    for tier in data["rush_tiers"]:
        _check_rate(tier["rate"], "rush_tiers.rate", upper=10.0)
    for tier in data["cart_discount_tiers"]:
        _check_rate(tier["rate"], "cart_discount_tiers.rate")

    tax = data["tax"]
    for state, rate in tax.get("state_rates", {}).items():
        _check_rate(rate, f"tax.state_rates.{state}")
    for state, cities in tax.get("city_rates", {}).items():
        for city, rate in cities.items():
            _check_rate(rate, f"tax.city_rates.{state}.{city}")

    limits = data["limits"]
    missing_limits = [key for key in LIMIT_KEYS if key not in limits]
    if missing_limits:
        raise PricingConfigError(f"limits missing keys: {', '.join(missing_limits)}")
    for key in LIMIT_KEYS:
        _check_rate(limits[key], f"limits.{key}", upper=MAX_INPUT_LIMIT)

    locality = data.get("locality_adjustments") or {}
    for state, multiplier in locality.get("state_multipliers", {}).items():
        _check_rate(multiplier, f"locality_adjustments.state_multipliers.{state}", upper=MAX_MULTIPLIER)
    for state, cities in locality.get("city_multipliers", {}).items():
        for city, multiplier in cities.items():
            _check_rate(multiplier, f"locality_adjustments.city_multipliers.{state}.{city}", upper=MAX_MULTIPLIER)

    commission = data["add_ons_commission"]
    _check_rate(commission["default_percentage"], "add_ons_commission.default_percentage", upper=100.0)
    for category, percent in commission.get("category_overrides", {}).items():
        _check_rate(percent, f"add_ons_commission.category_overrides.{category}", upper=100.0)


def pricing_config_from_data(data: Dict[str, Any]) -> PricingConfig:
    validate_pricing_data(data)
    canonical = _canonical_json(data)
    config_hash = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return PricingConfig(
        pricing_config_id=data["pricing_config_id"],
        pricing_config_version=str(data["pricing_config_version"]),
        config_hash=f"sha256:{config_hash}",
        data=data,
    )


def load_pricing_config(path: str) -> PricingConfig:
    resolved_path = _resolve_pricing_path(path)
    content = resolved_path.read_text(encoding="utf-8")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise PricingConfigError(f"Pricing config at {resolved_path} is not valid JSON") from exc
    config = pricing_config_from_data(data)
    logger.info(
        "pricing_config_loaded",
        extra={
            "extra": {
                "pricing_config_id": config.pricing_config_id,
                "pricing_config_version": config.pricing_config_version,
                "config_hash": config.config_hash,
            }
        },
    )
    return config
