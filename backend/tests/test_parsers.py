import pytest

from expense_bot.schemas import Category
from expense_bot.services.parsers import format_amount, normalize_category, parse_amount


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("21.990", 21990),
        ("21990", 21990),
        ("$21.990", 21990),
        ("21 990", 21990),
        ("1,500", 1500),
        (" 7000 ", 7000),
    ],
)
def test_parse_amount_accepts_grouped_pesos(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["0", "0.000", "-5", "abc", "", None, "12abc", "1e5", "nan"])
def test_parse_amount_rejects(raw):
    assert parse_amount(raw) is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1", Category.RACIONAL),
        ("Racional", Category.RACIONAL),
        ("2", Category.NEGOCIO),
        ("negocio", Category.NEGOCIO),
        ("  NE ", Category.NEGOCIO),
        ("3", Category.REBECA),
        ("rebe", Category.REBECA),
    ],
)
def test_normalize_category(raw, expected):
    assert normalize_category(raw) is expected


@pytest.mark.parametrize("raw", ["9", "0", "comida", "", None])
def test_normalize_category_rejects(raw):
    assert normalize_category(raw) is None


def test_format_amount_uses_dot_grouping():
    assert format_amount(21990) == "21.990"
    assert format_amount(1234567.0) == "1.234.567"
    assert format_amount(500) == "500"


def test_parse_amount_accepts_largest_exact_amount():
    assert parse_amount("999.999.999.999.999") == 999_999_999_999_999
    assert float(parse_amount("999999999999999")) == 999_999_999_999_999


@pytest.mark.parametrize("raw", ["9" * 16, "9" * 400, "1" + "0" * 5000])
def test_parse_amount_rejects_amounts_too_large_to_store(raw):
    assert parse_amount(raw) is None


def test_parse_amount_ignores_leading_zeros():
    assert parse_amount("0" * 5000 + "5") == 5
