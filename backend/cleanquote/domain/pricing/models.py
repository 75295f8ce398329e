from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, confloat, field_validator
from pydantic.alias_generators import to_camel


MAX_BASE_PRICE = 1_000_000.0


class Frequency(str, Enum):
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)


class PricingInputs(_CamelModel):
    """One quote request.

    Only ``base_price`` is validated strictly; everything else is clamped by the
    engine. ``None`` on the tunable fields means "use the pricing config default".
    """

    base_price: confloat(ge=0.0, le=MAX_BASE_PRICE)
    addons_total: float = 0.0
    demand_index: float = 0.0
    utilization: float = 1.0
    distance_km: float = 0.0
    free_radius_km: Optional[float] = None
    per_km_after_free: Optional[float] = None
    size_band: int = 0
    bedrooms: int = 0
    bathrooms: int = 0
    pet: bool = False
    clutter: int = 0
    first_time: bool = False
    month: Optional[int] = None
    lead_hours: float = 999.0
    jobs_in_cart: int = 1
    recurring: Optional[Frequency] = None
    city: Optional[str] = None
    state: Optional[str] = None
    service_fee_pct: Optional[float] = None
    tax_state: Optional[str] = None
    tax_city: Optional[str] = None

    @field_validator("base_price", mode="before")
    @classmethod
    def reject_boolean_price(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("basePrice must be a number")
        return value


class QuoteCents(_CamelModel):
    base: int
    addons_total: int
    distance_fee: int
    rush_fee: int
    subtotal_before_fees: int
    discount_amount: int
    service_fee: int
    tax_amount: int
    total: int


class PricingResult(_CamelModel):
    pricing_config_id: str
    pricing_config_version: str
    config_hash: str
    base: float
    addons_total: float
    surge_multiplier: float
    complexity_multiplier: float
    seasonal_multiplier: float
    locality_multiplier: float
    distance_fee: float
    rush_fee: float
    subtotal_before_fees: float
    service_fee: float
    tax_rate: float
    tax_amount: float
    discount_rate: float
    discount_amount: float
    total: float
    cents: QuoteCents


class QuoteResponse(_CamelModel):
    quote: PricingResult


class AddOnCatalogItem(_CamelModel):
    id: str
    name: str
    base_price: float
    category: str
    commission_percent: float
    provider_share_percent: float


class AddOnCatalogResponse(_CamelModel):
    pricing_config_id: str
    pricing_config_version: str
    config_hash: str
    default_commission_percent: float
    items: list[AddOnCatalogItem] = Field(default_factory=list)
