from functools import lru_cache

from fastapi import Request

from cleanquote.domain.pricing.config_loader import PricingConfig, load_pricing_config
from cleanquote.infra.metrics import Metrics, metrics
from cleanquote.settings import settings


@lru_cache
def get_pricing_config() -> PricingConfig:
    return load_pricing_config(settings.pricing_config_path)


def get_metrics(request: Request) -> Metrics:
    return getattr(request.app.state, "metrics", None) or metrics
