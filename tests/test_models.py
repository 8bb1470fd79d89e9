import math

import pytest
from pydantic import ValidationError

from models import (
    AppSettings,
    SystemConfiguration,
    validate_personal_details,
    validate_settings,
    validate_system_configuration,
)


def test_valid_personal_details(details):
    result = validate_personal_details(details)
    assert result.ok
    assert result.value.email == "priya@example.com"
    assert result.errors == {}


def test_personal_details_field_errors():
    result = validate_personal_details({"name": "  ", "phone": "123", "email": "not-an-email"})
    assert not result.ok
    assert result.value is None
    assert result.errors["name"] == "Name is required"
    assert result.errors["email"] == "Invalid email"
    assert result.errors["address"] == "Address is required"
    assert "phone" not in result.errors


def test_system_configuration_rejects_non_positive_values(config):
    config.update(watt_peak=0, number_of_panels=-2, base_price_per_kw=-1)
    result = validate_system_configuration(config)
    assert not result.ok
    assert set(result.errors) == {"watt_peak", "number_of_panels", "base_price_per_kw"}
    assert result.errors["watt_peak"] == "Watt Peak must be positive"


def test_system_configuration_rejects_out_of_range_charges(config):
    config.update(gst_percentage=101, cleaning_charges=-5, subsidy=-1)
    result = validate_system_configuration(config)
    assert set(result.errors) == {"gst_percentage", "cleaning_charges", "subsidy"}
    assert result.errors["subsidy"] == "Subsidy cannot be negative"


def test_system_configuration_rejects_non_finite(config):
    config["watt_peak"] = math.inf
    result = validate_system_configuration(config)
    assert "watt_peak" in result.errors


def test_camel_case_json_form(config):
    cfg = SystemConfiguration(**config)
    data = cfg.to_json_dict()
    assert data["wattPeak"] == 540
    assert data["numberOfPanels"] == 20
    assert SystemConfiguration.model_validate(data) == cfg


def test_configuration_is_immutable(config):
    cfg = SystemConfiguration(**config)
    with pytest.raises(ValidationError):
        cfg.watt_peak = 1


def test_settings_defaults_and_validation():
    settings = AppSettings()
    assert settings.default_gst_percentage == 13.8
    assert settings.default_base_price_per_kw == 50000
    result = validate_settings({"default_gst_percentage": 120, "default_base_price_per_kw": 0})
    assert set(result.errors) == {"default_gst_percentage", "default_base_price_per_kw"}
