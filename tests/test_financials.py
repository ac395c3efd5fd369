import math

import pytest

from dartlens.financials import ACCOUNT_PATTERNS, derive_metrics, find_amount, parse_amount
from tests.helpers.fake_dart import row


@pytest.mark.parametrize("number", [0, 7, 999, 1000, 1234567, -45000, 98765432101])
def test_parse_amount_reads_grouped_integers(number):
    assert parse_amount(f"{number:,}") == number


def test_parse_amount_treats_parentheses_as_negative():
    assert parse_amount("(1,234)") == -1234
    assert parse_amount(" ( 500 ) ") == -500


def test_parse_amount_handles_decimals_and_whitespace():
    assert parse_amount("  12,345.67 ") == 12345.67
    assert parse_amount(1500) == 1500


@pytest.mark.parametrize("text", ["", "   ", "-", "abc", None, "()", "1_000", "inf", "NaN", "12a"])
def test_parse_amount_returns_nan_for_malformed_input(text):
    assert math.isnan(parse_amount(text))


def test_find_amount_returns_first_match_in_filing_order():
    rows = [row("자산총계", "100"), row("자산총계", "200")]
    assert find_amount(rows, "자산총계") == 100


def test_find_amount_is_nan_without_match():
    rows = [row("부채총계", "100")]
    assert math.isnan(find_amount(rows, "자산총계"))
    assert math.isnan(find_amount([], "자산총계"))


def test_find_amount_skips_rows_without_label():
    rows = [{"thstrm_amount": "5"}, {"account_nm": None, "thstrm_amount": "6"}, row("영업이익", "7")]
    assert find_amount(rows, "영업이익") == 7


def test_account_patterns_match_label_variants():
    patterns = dict(ACCOUNT_PATTERNS)
    assert patterns["revenue"].search("수익(매출액)")
    assert patterns["netIncome"].search("반기순이익")
    assert patterns["retainedEarnings"].search("미처리결손금")


def test_derive_metrics_end_to_end_ratios():
    rows = [
        row("자산총계", "1,000"),
        row("부채총계", "400"),
        row("자본총계", "600"),
        row("당기순이익", "60"),
    ]
    metrics = derive_metrics(rows)
    assert metrics["debtRatio"] == pytest.approx(66.6667, rel=1e-4)
    assert metrics["roa"] == pytest.approx(6)
    assert metrics["roe"] == pytest.approx(10)
    assert math.isnan(metrics["reserveRatio"])
    assert math.isnan(metrics["revenue"])


def test_derive_metrics_ebitda_without_depreciation_rows():
    metrics = derive_metrics([row("영업이익", "1,000")])
    assert metrics["ebitda"] == 1000


def test_derive_metrics_ebitda_adds_depreciation_and_amortization():
    rows = [row("영업이익", "1,000"), row("감가상각비", "200"), row("무형자산상각비", "(50)")]
    assert derive_metrics(rows)["ebitda"] == 1150


def test_derive_metrics_ebitda_uses_zero_for_missing_operating_income():
    assert derive_metrics([row("감가상각비", "300")])["ebitda"] == 300


def test_derive_metrics_overflowing_ratio_is_nan():
    metrics = derive_metrics([row("자산총계", "1e-10"), row("당기순이익", "1e300")])
    assert math.isnan(metrics["roa"])


def test_derive_metrics_overflowing_ebitda_is_nan():
    metrics = derive_metrics([row("영업이익", "1.7e308"), row("감가상각비", "1.7e308")])
    assert metrics["operatingIncome"] == 1.7e308
    assert math.isnan(metrics["ebitda"])


def test_derive_metrics_reserve_ratio_and_zero_capital():
    metrics = derive_metrics([row("이익잉여금", "500"), row("자본금", "100")])
    assert metrics["reserveRatio"] == 500
    zero = derive_metrics([row("이익잉여금", "500"), row("자본금", "0")])
    assert math.isnan(zero["reserveRatio"])


def test_derive_metrics_invalid_amount_is_field_local():
    rows = [row("자산총계", "N/A"), row("자본총계", "600"), row("당기순이익", "60"), row("부채총계", "300")]
    metrics = derive_metrics(rows)
    assert math.isnan(metrics["totalAssets"])
    assert math.isnan(metrics["roa"])
    assert metrics["roe"] == pytest.approx(10)
    assert metrics["debtRatio"] == pytest.approx(50)


def test_derive_metrics_returns_every_field_for_empty_rows():
    metrics = derive_metrics([])
    assert list(metrics) == [
        "revenue",
        "operatingIncome",
        "netIncome",
        "totalAssets",
        "totalLiabilities",
        "totalEquity",
        "ebitda",
        "debtRatio",
        "reserveRatio",
        "roa",
        "roe",
    ]
    assert metrics["ebitda"] == 0
    assert all(math.isnan(v) for k, v in metrics.items() if k != "ebitda")
