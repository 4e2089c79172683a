from datetime import date, datetime

from dernek_api.bicim import (
    format_currency, format_date, format_date_iso, format_number, join_name, parse_number_safe, truncate
)
from dernek_api.modeller import ParaBirimi


def test_format_number_turkish_separators():
    assert format_number(1234) == "1.234"
    assert format_number(1234.5) == "1.234,5"
    assert format_number(1234567.8916) == "1.234.567,892"
    assert format_number(0) == "0"
    assert format_number("2,5") == "-"
    assert format_number(1234.5, 2) == "1.234,50"
    assert format_number(0, 2) == "0,00"
    assert format_number(float("nan")) == "-"
    assert format_number("abc") == "-"


def test_format_currency_symbols():
    assert format_currency(1234.56) == "₺1.234,56"
    assert format_currency(10, "USD") == "$10,00"
    assert format_currency(10, ParaBirimi.EUR) == "€10,00"
    assert format_currency(-5, "TRY") == "-₺5,00"
    assert format_currency(7, "GBP") == "7,00 GBP"
    assert format_currency(float("inf")) == "-"


def test_format_date_variants():
    assert format_date(date(2024, 3, 9)) == "09.03.2024"
    assert format_date(datetime(2024, 12, 31, 23, 59)) == "31.12.2024"
    assert format_date("2024-01-15") == "15.01.2024"
    assert format_date("2024-01-15T10:00:00Z") == "15.01.2024"
    assert format_date(None) == "-"
    assert format_date("") == "-"
    assert format_date("geçersiz") == "-"


def test_format_date_iso():
    assert format_date_iso(date(2024, 3, 9)) == "2024-03-09"
    assert format_date_iso() == date.today().isoformat()
    assert format_date_iso("bozuk") == ""


def test_parse_number_safe():
    assert parse_number_safe("1.234,56") == 1234.56
    assert parse_number_safe("1234.56") == 1234.56
    assert parse_number_safe(" 12 ") == 12.0
    assert parse_number_safe("abc") == 0.0
    assert parse_number_safe(None, varsayilan=-1) == -1
    assert parse_number_safe(float("nan"), varsayilan=3) == 3


def test_join_name():
    assert join_name("Ayşe", "Yılmaz") == "Ayşe Yılmaz"
    assert join_name("Ayşe", None) == "Ayşe"
    assert join_name(None, None) == "-"


def test_truncate():
    assert truncate("kısa", 10) == "kısa"
    assert truncate("abcdefghij", 5) == "abcd…"
    assert len(truncate("x" * 200)) == 120
    assert truncate(None) == ""
