"""Tests for es-AR formatting helpers."""
import math
from datetime import date

import pytest

from app.utils.formatting import (
    calculate_ratio,
    codify_code,
    format_currency,
    format_for_display,
    format_for_input,
    format_phone_number,
    format_quantity,
    format_status,
    format_to_million,
    formatted_date,
    parse_decimal,
    slugify,
    NBSP,
)


class TestCurrency:

    def test_thousands_and_decimals(self):
        assert format_currency(1500) == f"${NBSP}1.500,00"
        assert format_currency(1234567.891) == f"${NBSP}1.234.567,89"

    def test_negative(self):
        assert format_currency(-2500.5) == f"-${NBSP}2.500,50"

    def test_negative_rounding_to_zero_has_no_sign(self):
        assert format_currency(-0.001) == f"${NBSP}0,00"

    def test_millions(self):
        assert format_to_million(2_500_000) == f"${NBSP}2,50M"


class TestQuantity:

    @pytest.mark.parametrize("quantity,expected", [
        (2.5, "2 + 1/2"),
        (0.75, "3/4"),
        (4, "4"),
        (3.3, "3"),
        (-1.25, "-1 - 1/4"),
        (-0.5, "-1/2"),
    ])
    def test_quarter_fractions(self, quantity, expected):
        assert format_quantity(quantity) == expected


class TestText:

    def test_formatted_date(self):
        assert formatted_date("2024-03-05") == "Mar 5, 2024"
        assert formatted_date(date(2024, 12, 25)) == "Dic 25, 2024"

    def test_format_status(self):
        assert format_status("en-proceso") == "En Proceso"

    def test_calculate_ratio(self):
        assert calculate_ratio(0, 5) == 0
        assert calculate_ratio(200, 50) == 25

    def test_slugify(self):
        assert slugify("Comida Perro Adulto") == "comida-perro-adulto"
        assert slugify("Ñandú Café!") == "nandu-cafe"

    def test_codify_code(self):
        assert codify_code("mercado pago") == "MERCADO_PAGO"
        assert codify_code("Cuenta-DNI") == "CUENTADNI"


class TestPhone:

    def test_local_number(self):
        assert format_phone_number("1123456789") == "(112) 345-6789"

    def test_mobile_prefix_kept(self):
        assert format_phone_number("+54 9 1123456789") == "+54 9 (112) 345-6789"

    def test_bare_prefix_is_empty(self):
        assert format_phone_number("+54 9") == ""
        assert format_phone_number(None) == ""


class TestNumericInput:

    @pytest.mark.parametrize("value,expected", [
        ("3,5", 3.5),
        ("12", 12),
        ("", 0),
        (None, 0),
        ("abc", 0),
        (7, 7),
    ])
    def test_parse_decimal(self, value, expected):
        assert parse_decimal(value) == expected

    def test_partial_input_is_kept_as_text(self):
        assert parse_decimal("3,") == "3."
        assert parse_decimal("3.0") == "3.0"

    def test_nan_is_zero(self):
        assert parse_decimal(math.nan) == 0

    def test_format_for_input(self):
        assert format_for_input(1500.0) == "1500"
        assert format_for_input(12.5) == "12.50"
        assert format_for_input(None) == ""

    def test_format_for_display(self):
        assert format_for_display(1500) == "1.500"
        assert format_for_display(1234.5) == "1.234,5"
        assert format_for_display(None) == "0"
