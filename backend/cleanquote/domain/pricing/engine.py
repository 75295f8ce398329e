from decimal import Decimal
from typing import Any, Dict, Optional

from cleanquote.domain.pricing.config_loader import PricingConfig
from cleanquote.domain.pricing.models import Frequency, PricingInputs, PricingResult, QuoteCents
from cleanquote.domain.pricing.money import ZERO, cents_to_float, quantize_cents, to_cents, to_decimal
from cleanquote.domain.pricing.tax import lookup_tax_rate, normalize_jurisdiction

ONE = Decimal("1")
MIN_LEAD_HOURS = Decimal("0.01")


def _clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(high, value))


def _surge_multiplier(config: Dict[str, Any], demand_index: float, utilization: float) -> Decimal:
    surge = config["surge"]
    demand = ONE + to_decimal(demand_index) * to_decimal(surge["demand_slope"])
    demand = _clamp(demand, ONE, to_decimal(surge["max_multiplier"]))
    off_peak = config["off_peak"]
    if to_decimal(utilization) < to_decimal(off_peak["utilization_threshold"]):
        return demand * to_decimal(off_peak["multiplier"])
    return demand


def _complexity_multiplier(config: Dict[str, Any], inputs: PricingInputs) -> Decimal:
    complexity = config["complexity"]
    weights = complexity["weights"]
    score = (
        to_decimal(inputs.size_band) * to_decimal(weights["size_band"])
        + to_decimal(inputs.bedrooms) * to_decimal(weights["bedrooms"])
        + to_decimal(inputs.bathrooms) * to_decimal(weights["bathrooms"])
        + (to_decimal(weights["pet"]) if inputs.pet else ZERO)
        + to_decimal(inputs.clutter) * to_decimal(weights["clutter"])
        + (to_decimal(weights["first_time"]) if inputs.first_time else ZERO)
    )
    multiplier = ONE + to_decimal(complexity["step"]) * score
    return _clamp(multiplier, ONE, to_decimal(complexity["max_multiplier"]))


def _seasonal_multiplier(config: Dict[str, Any], month: Optional[int]) -> Decimal:
    if month is None or not 1 <= month <= 12:
        return ONE
    return to_decimal(config["seasonal_multipliers"][month - 1])


def _locality_multiplier(config: Dict[str, Any], state: Optional[str], city: Optional[str]) -> Decimal:
    table = config.get("locality_adjustments") or {}
    state_code = normalize_jurisdiction(state)
    if not state_code:
        return ONE
    city_name = normalize_jurisdiction(city)
    if city_name:
        cities = table.get("city_multipliers", {}).get(state_code, {})
        for name, multiplier in cities.items():
            if normalize_jurisdiction(name) == city_name:
                return max(ZERO, to_decimal(multiplier))
    multiplier = table.get("state_multipliers", {}).get(state_code)
    if multiplier is None:
        return ONE
    return max(ZERO, to_decimal(multiplier))


def _distance_fee(config: Dict[str, Any], inputs: PricingInputs) -> Decimal:
    distance = config["distance"]
    limits = config["limits"]
    km = _clamp(to_decimal(inputs.distance_km), ZERO, to_decimal(limits["max_distance_km"]))
    free_km = to_decimal(inputs.free_radius_km if inputs.free_radius_km is not None else distance["free_radius_km"])
    free_km = max(ZERO, free_km)
    per_km = to_decimal(
        inputs.per_km_after_free if inputs.per_km_after_free is not None else distance["per_km_after_free"]
    )
    per_km = _clamp(per_km, ZERO, to_decimal(limits["max_per_km_after_free"]))
    return max(ZERO, km - free_km) * per_km


def _rush_rate(config: Dict[str, Any], lead_hours: float) -> Decimal:
    lead = max(MIN_LEAD_HOURS, to_decimal(lead_hours))
    tiers = sorted(config["rush_tiers"], key=lambda tier: tier["max_lead_hours"])
    for tier in tiers:
        if lead < to_decimal(tier["max_lead_hours"]):
            return to_decimal(tier["rate"])
    return ZERO


def _discount_rate(config: Dict[str, Any], recurring: Optional[Frequency], jobs_in_cart: int) -> Decimal:
    # Recurring loyalty replaces the cart tier; the two never stack.
    if recurring is not None:
        return to_decimal(config["recurring_discounts"].get(recurring.value, 0))
    tiers = sorted(config["cart_discount_tiers"], key=lambda tier: tier["min_jobs"], reverse=True)
    for tier in tiers:
        if jobs_in_cart >= tier["min_jobs"]:
            return to_decimal(tier["rate"])
    return ZERO


def compute_price(inputs: PricingInputs, pricing: PricingConfig) -> PricingResult:
    config = pricing.data

    surge_multiplier = _surge_multiplier(config, inputs.demand_index, inputs.utilization)
    complexity_multiplier = _complexity_multiplier(config, inputs)
    seasonal_multiplier = _seasonal_multiplier(config, inputs.month)
    locality_multiplier = _locality_multiplier(config, inputs.state, inputs.city)

    base = max(ZERO, to_decimal(inputs.base_price))
    adjusted_base = base * surge_multiplier * complexity_multiplier * seasonal_multiplier * locality_multiplier
    rush_rate = _rush_rate(config, inputs.lead_hours)

    base_cents = to_cents(base)
    adjusted_base_cents = to_cents(adjusted_base)
    max_addons = to_decimal(config["limits"]["max_addons_total"])
    addons_cents = to_cents(_clamp(to_decimal(inputs.addons_total), ZERO, max_addons))
    distance_cents = to_cents(_distance_fee(config, inputs))
    rush_cents = to_cents(adjusted_base * rush_rate)
    subtotal_cents = max(0, adjusted_base_cents + addons_cents + distance_cents + rush_cents)

    discount_rate = _clamp(_discount_rate(config, inputs.recurring, inputs.jobs_in_cart), ZERO, ONE)
    discount_cents = quantize_cents(Decimal(subtotal_cents) * discount_rate)

    fee_pct = inputs.service_fee_pct if inputs.service_fee_pct is not None else config["service_fee_pct"]
    service_fee_pct = _clamp(to_decimal(fee_pct), ZERO, ONE)
    service_fee_cents = quantize_cents(Decimal(subtotal_cents) * service_fee_pct)

    tax_table = config["tax"]
    tax_rate = lookup_tax_rate(tax_table, inputs.tax_state, inputs.tax_city)
    taxable_cents = subtotal_cents - discount_cents
    if tax_table.get("includes_service_fee", False):
        taxable_cents += service_fee_cents
    tax_cents = quantize_cents(Decimal(taxable_cents) * tax_rate)

    total_cents = subtotal_cents - discount_cents + service_fee_cents + tax_cents

    cents = QuoteCents(
        base=base_cents,
        addons_total=addons_cents,
        distance_fee=distance_cents,
        rush_fee=rush_cents,
        subtotal_before_fees=subtotal_cents,
        discount_amount=discount_cents,
        service_fee=service_fee_cents,
        tax_amount=tax_cents,
        total=total_cents,
    )

    return PricingResult(
        pricing_config_id=pricing.pricing_config_id,
        pricing_config_version=pricing.pricing_config_version,
        config_hash=pricing.config_hash,
        base=cents_to_float(base_cents),
        addons_total=cents_to_float(addons_cents),
        surge_multiplier=float(surge_multiplier),
        complexity_multiplier=float(complexity_multiplier),
        seasonal_multiplier=float(seasonal_multiplier),
        locality_multiplier=float(locality_multiplier),
        distance_fee=cents_to_float(distance_cents),
        rush_fee=cents_to_float(rush_cents),
        subtotal_before_fees=cents_to_float(subtotal_cents),
        service_fee=cents_to_float(service_fee_cents),
        tax_rate=float(tax_rate),
        tax_amount=cents_to_float(tax_cents),
        discount_rate=float(discount_rate),
        discount_amount=cents_to_float(discount_cents),
        total=cents_to_float(total_cents),
        cents=cents,
    )
