"""Platform commission on add-on revenue.

Percentages are whole-number percents (``18`` means 18%). Category overrides
come from the pricing config and can be layered with per-call overrides.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from cleanquote.domain.pricing.config_loader import PricingConfig
from cleanquote.domain.pricing.money import ZERO, cents_to_float, to_cents, to_decimal

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def _commission_settings(pricing: PricingConfig) -> Dict[str, Any]:
    return pricing.data["add_ons_commission"]


def get_add_ons_commission_percent(
    pricing: PricingConfig,
    category: Optional[str] = None,
    overrides: Optional[Mapping[str, float]] = None,
) -> float:
    settings = _commission_settings(pricing)
    default = settings["default_percentage"]
    if not category:
        return float(default)
    if overrides and category in overrides:
        return float(overrides[category])
    configured = settings.get("category_overrides") or {}
    if category in configured:
        return float(configured[category])
    return float(default)


def provider_share_percent(pricing: PricingConfig, category: Optional[str] = None) -> float:
    """Share of add-on revenue kept by the provider, for display."""
    percent = to_decimal(get_add_ons_commission_percent(pricing, category))
    return float(HUNDRED - percent)


def calculate_add_ons_commission(
    pricing: PricingConfig,
    add_ons_subtotal: float,
    category_breakdown: Optional[Mapping[str, float]] = None,
    overrides: Optional[Mapping[str, float]] = None,
) -> float:
    """Commission owed to the platform, rounded once to cents.

    A non-empty ``category_breakdown`` takes precedence over the flat subtotal;
    an empty mapping is treated as no breakdown.
    """
    total = ZERO
    if category_breakdown:
        for category, amount in category_breakdown.items():
            percent = to_decimal(get_add_ons_commission_percent(pricing, category, overrides))
            total += max(ZERO, to_decimal(amount)) * percent / HUNDRED
    else:
        percent = to_decimal(get_add_ons_commission_percent(pricing))
        total = max(ZERO, to_decimal(add_ons_subtotal)) * percent / HUNDRED
    return cents_to_float(to_cents(total))


def add_ons_breakdown(pricing: PricingConfig, addon_ids: Iterable[str]) -> Tuple[float, Dict[str, float]]:
    """Subtotal and per-category amounts for catalog add-ons.

    Repeated ids count once per occurrence. Unknown ids raise ``KeyError``.
    """
    catalog = {item["id"]: item for item in pricing.data.get("add_on_catalog", [])}
    subtotal = ZERO
    by_category: Dict[str, Decimal] = {}
    for addon_id in addon_ids:
        item = catalog.get(addon_id)
        if item is None:
            logger.warning("unknown_add_on", extra={"extra": {"addon_id": addon_id}})
            raise KeyError(addon_id)
        price = to_decimal(item["base_price"])
        subtotal += price
        by_category[item["category"]] = by_category.get(item["category"], ZERO) + price
    return float(subtotal), {category: float(amount) for category, amount in by_category.items()}
