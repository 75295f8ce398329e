import pytest

from cleanquote.domain.pricing.commission import (
    add_ons_breakdown,
    calculate_add_ons_commission,
    get_add_ons_commission_percent,
    provider_share_percent,
)


def test_flat_subtotal_uses_default_percent(pricing_config):
    assert calculate_add_ons_commission(pricing_config, 100) == 18.0


def test_breakdown_without_overrides_uses_default(pricing_config):
    breakdown = {"home_care": 50, "pest_control": 50}
    assert calculate_add_ons_commission(pricing_config, 0, breakdown) == 18.0


def test_breakdown_takes_precedence_over_subtotal(pricing_config):
    assert calculate_add_ons_commission(pricing_config, 1000, {"home_care": 10}) == 1.8


def test_breakdown_applies_configured_overrides(make_pricing_config):
    config = make_pricing_config(
        add_ons_commission={"default_percentage": 18, "category_overrides": {"pest_control": 20}}
    )
    breakdown = {"pest_control": 150, "home_care": 25}
    assert calculate_add_ons_commission(config, 0, breakdown) == pytest.approx(150 * 0.20 + 25 * 0.18)


def test_call_overrides_win_over_config(make_pricing_config):
    config = make_pricing_config(
        add_ons_commission={"default_percentage": 18, "category_overrides": {"pest_control": 20}}
    )
    breakdown = {"pest_control": 100, "tech": 100}
    result = calculate_add_ons_commission(config, 0, breakdown, overrides={"pest_control": 10, "tech": 25})
    assert result == 35.0


def test_empty_inputs_return_zero(pricing_config):
    assert calculate_add_ons_commission(pricing_config, 0) == 0
    assert calculate_add_ons_commission(pricing_config, 0, {}) == 0
    assert calculate_add_ons_commission(pricing_config, 0, {"home_care": 0, "tech": 0}) == 0


def test_empty_breakdown_falls_back_to_subtotal(pricing_config):
    assert calculate_add_ons_commission(pricing_config, 50, {}) == 9.0


def test_negative_amounts_are_ignored(pricing_config):
    assert calculate_add_ons_commission(pricing_config, -100) == 0
    assert calculate_add_ons_commission(pricing_config, 0, {"home_care": -20, "tech": 10}) == 1.8


def test_commission_rounds_once_to_cents(pricing_config):
    # 3 x 0.1854 = 0.5562; rounding each category first would give 0.57
    breakdown = {"a": 1.03, "b": 1.03, "c": 1.03}
    assert calculate_add_ons_commission(pricing_config, 0, breakdown) == 0.56


def test_percent_lookup(make_pricing_config):
    config = make_pricing_config(
        add_ons_commission={"default_percentage": 18, "category_overrides": {"hvac": 12.5}}
    )
    assert get_add_ons_commission_percent(config) == 18
    assert get_add_ons_commission_percent(config, "hvac") == 12.5
    assert get_add_ons_commission_percent(config, "repairs") == 18
    assert get_add_ons_commission_percent(config, "repairs", overrides={"repairs": 22}) == 22


def test_provider_share(pricing_config):
    assert provider_share_percent(pricing_config) == 82.0
    assert provider_share_percent(pricing_config, "pest_control") == 82.0


def test_add_ons_breakdown_from_catalog(pricing_config):
    subtotal, breakdown = add_ons_breakdown(
        pricing_config, ["laundry_ironing", "organization", "pest_control", "laundry_ironing"]
    )
    assert subtotal == 260.0
    assert breakdown == {"home_care": 110.0, "pest_control": 150.0}
    assert calculate_add_ons_commission(pricing_config, subtotal, breakdown) == 46.8


def test_add_ons_breakdown_rejects_unknown_id(pricing_config):
    with pytest.raises(KeyError):
        add_ons_breakdown(pricing_config, ["teleportation"])
