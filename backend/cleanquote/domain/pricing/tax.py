from decimal import Decimal
from typing import Any, Dict, Optional

from cleanquote.domain.pricing.money import ZERO, to_decimal


def normalize_jurisdiction(value: Optional[str]) -> str:
    return " ".join((value or "").split()).upper()


def lookup_tax_rate(tax_table: Dict[str, Any], state: Optional[str], city: Optional[str] = None) -> Decimal:
    """Combined sales tax rate for a jurisdiction.

    City rates are full combined rates keyed by state, then upper-cased city name.
    Unknown city falls back to the state rate; unknown state is untaxed.
    """
    state_code = normalize_jurisdiction(state)
    if not state_code:
        return ZERO
    city_name = normalize_jurisdiction(city)
    if city_name:
        city_rates = tax_table.get("city_rates", {}).get(state_code, {})
        normalized_city_rates = {normalize_jurisdiction(name): rate for name, rate in city_rates.items()}
        if city_name in normalized_city_rates:
            return to_decimal(normalized_city_rates[city_name])
    state_rate = tax_table.get("state_rates", {}).get(state_code)
    if state_rate is None:
        return ZERO
    return to_decimal(state_rate)
