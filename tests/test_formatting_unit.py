import pytest

from calc.formatting import format_value, parse_value, strip_separators


@pytest.mark.parametrize(
    "value,expected",
    [
        (1234567.5, "1,234,567.5"),
        (1000.0, "1,000"),
        (999, "999"),
        (100, "100"),
        (-1234.5678, "-1,234.568"),
        (2 / 3, "0.667"),
        (0.1 + 0.2, "0.3"),
        (7.5, "7.5"),
        (-0.0001, "0"),
        (0.0, "0"),
    ],
)
def test_format_value(value, expected) -> None:
    assert format_value(value) == expected


def test_format_value_precision() -> None:
    assert format_value(3.14159, 2) == "3.14"
    assert format_value(3.14159, 5) == "3.14159"
    assert format_value(1.25, 10) == "1.25"


def test_parse_value_ignores_separators_and_comment() -> None:
    assert parse_value("1,234.5") == 1234.5
    assert parse_value("6.5432 # BOC (2024-01-02)") == 6.5432
    assert parse_value("-2,000") == -2000.0


@pytest.mark.parametrize("text", ["", "Error", "Import from cfg file", "# note"])
def test_parse_value_rejects_non_numbers(text) -> None:
    with pytest.raises(ValueError):
        parse_value(text)


def test_formatted_value_parses_back() -> None:
    for value in (0.5, 12345.678, -987654.321, 42.0):
        assert parse_value(format_value(value)) == pytest.approx(value, abs=1e-3)


def test_strip_separators_is_idempotent() -> None:
    once = strip_separators("1,234,567")
    assert once == "1234567"
    assert strip_separators(once) == once
