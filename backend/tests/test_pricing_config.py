import copy
import json

import pytest

from cleanquote.domain.pricing.config_loader import (
    PricingConfigError,
    load_pricing_config,
    pricing_config_from_data,
)


def test_shipped_config_loads(pricing_config):
    assert pricing_config.pricing_config_id == "marketplace"
    assert pricing_config.pricing_config_version == "v1"
    assert pricing_config.config_hash.startswith("sha256:")
    assert len(pricing_config.data["seasonal_multipliers"]) == 12


def test_hash_ignores_key_order(pricing_config, tmp_path):
    reordered = dict(reversed(list(pricing_config.data.items())))
    path = tmp_path / "reordered.json"
    path.write_text(json.dumps(reordered, indent=4), encoding="utf-8")

    assert load_pricing_config(str(path)).config_hash == pricing_config.config_hash


def test_hash_changes_with_content(pricing_config):
    data = copy.deepcopy(pricing_config.data)
    data["service_fee_pct"] = 0.12
    assert pricing_config_from_data(data).config_hash != pricing_config.config_hash


def test_missing_file_raises():
    with pytest.raises(FileNotFoundError):
        load_pricing_config("pricing/does_not_exist.json")


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PricingConfigError):
        load_pricing_config(str(path))


def test_missing_section_raises(pricing_config):
    data = copy.deepcopy(pricing_config.data)
    del data["tax"]
    with pytest.raises(PricingConfigError, match="tax"):
        pricing_config_from_data(data)


def test_seasonal_table_must_have_twelve_entries(pricing_config):
    data = copy.deepcopy(pricing_config.data)
    data["seasonal_multipliers"] = data["seasonal_multipliers"][:11]
    with pytest.raises(PricingConfigError, match="seasonal_multipliers"):
        pricing_config_from_data(data)


@pytest.mark.parametrize(
    "section, key, value",
    [
        ("add_ons_commission", "default_percentage", 120),
        ("add_ons_commission", "default_percentage", -1),
        ("recurring_discounts", "weekly", 1.5),
        ("surge", "max_multiplier", 0.5),
    ],
)
def test_out_of_range_values_raise(pricing_config, section, key, value):
    data = copy.deepcopy(pricing_config.data)
    data[section][key] = value
    with pytest.raises(PricingConfigError):
        pricing_config_from_data(data)


def test_commission_override_out_of_range_raises(pricing_config):
    data = copy.deepcopy(pricing_config.data)
    data["add_ons_commission"]["category_overrides"] = {"pest_control": 101}
    with pytest.raises(PricingConfigError, match="pest_control"):
        pricing_config_from_data(data)


def test_missing_limit_raises(pricing_config):
    data = copy.deepcopy(pricing_config.data)
    del data["limits"]["max_distance_km"]
    with pytest.raises(PricingConfigError, match="max_distance_km"):
        pricing_config_from_data(data)


@pytest.mark.parametrize(
    "section, value",
    [
        ("limits", {"max_addons_total": 1e30, "max_distance_km": 500, "max_per_km_after_free": 25}),
        ("locality_adjustments", {"state_multipliers": {"CA": 50}, "city_multipliers": {}}),
        ("complexity", None),
    ],
)
def test_unbounded_values_raise(pricing_config, section, value):
    data = copy.deepcopy(pricing_config.data)
    if value is None:
        data[section]["max_multiplier"] = 1e30
    else:
        data[section] = value
    with pytest.raises(PricingConfigError):
        pricing_config_from_data(data)
