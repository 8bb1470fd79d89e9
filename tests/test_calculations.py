from models import SystemConfiguration
from utils import calculate_system_metrics, format_currency, format_number, round_half_up


def test_reference_quotation(config):
    calc = calculate_system_metrics(SystemConfiguration(**config))
    assert calc.system_size == 10.8
    assert calc.total_base_price == 540000
    assert calc.gst_amount == 74520
    assert calc.total_payable_amount == 609520


def test_calculation_is_deterministic(config):
    cfg = SystemConfiguration(**config)
    assert calculate_system_metrics(cfg) == calculate_system_metrics(cfg)


def test_zero_gst_cleaning_and_subsidy(config):
    config.update(gst_percentage=0, cleaning_charges=0, subsidy=0)
    calc = calculate_system_metrics(SystemConfiguration(**config))
    assert calc.gst_amount == 0
    assert calc.total_payable_amount == calc.total_base_price == 540000


def test_total_is_rounded_from_raw_values():
    # base 1000.4 and GST 0.4 each round down, their raw sum 1000.8 rounds up
    cfg = SystemConfiguration(
        make="X",
        watt_peak=1000.4,
        number_of_panels=1,
        base_price_per_kw=1000,
        gst_percentage=0.04,
        cleaning_charges=0,
        subsidy=0,
    )
    calc = calculate_system_metrics(cfg)
    assert calc.total_base_price == 1000
    assert calc.gst_amount == 0
    assert calc.total_payable_amount == 1001


def test_system_size_rounds_to_two_places():
    cfg = SystemConfiguration(
        make="X", watt_peak=333, number_of_panels=7, base_price_per_kw=1,
        gst_percentage=0, cleaning_charges=0, subsidy=0,
    )
    assert calculate_system_metrics(cfg).system_size == 2.33


def test_round_half_up_ties():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(-2.5) == -2
    assert round_half_up(1.125, 2) == 1.13


def test_subsidy_larger_than_price_gives_negative_total():
    cfg = SystemConfiguration(
        make="X", watt_peak=100, number_of_panels=1, base_price_per_kw=1000,
        gst_percentage=0, cleaning_charges=0, subsidy=500,
    )
    assert calculate_system_metrics(cfg).total_payable_amount == -400


def test_format_currency_uses_indian_grouping():
    assert format_currency(540000) == "₹5,40,000.00"
    assert format_currency(12345678.5) == "₹1,23,45,678.50"
    assert format_currency(999) == "₹999.00"
    assert format_currency(-5000) == "-₹5,000.00"


def test_format_number():
    assert format_number(10.8) == "10.8"
    assert format_number(123456) == "1,23,456"
    assert format_number(0) == "0"
    assert format_number(13.8) == "13.8"
