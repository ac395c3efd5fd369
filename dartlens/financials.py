import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Pattern, Tuple, Union

from .ratio_calculator import NAN, FinancialRatioCalculator


LABEL_KEY = "account_nm"
AMOUNT_KEY = "thstrm_amount"

# Ordered label alternatives per concept; the first row in filing order wins.
ACCOUNT_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("totalAssets", re.compile(r"자산총계")),
    ("totalLiabilities", re.compile(r"부채총계")),
    ("totalEquity", re.compile(r"자본총계")),
    ("revenue", re.compile(r"(매출액|수익\(매출액\))")),
    ("operatingIncome", re.compile(r"영업이익")),
    ("netIncome", re.compile(r"(당기순이익|분기순이익|반기순이익)")),
    ("retainedEarnings", re.compile(r"(이익잉여금|결손금)")),
    ("capital", re.compile(r"자본금")),
    ("depreciation", re.compile(r"감가상각비")),
    ("amortization", re.compile(r"무형자산상각비")),
]

METRIC_FIELDS = [
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

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def parse_amount(value: Any) -> float:
    """Parse a filing amount such as ``"1,234"`` or ``"(1,234)"``; NaN when unparseable."""
    if value is None:
        return NAN
    text = str(value).replace(",", "").strip()
    if text in {"", "-"}:
        return NAN
    negative = len(text) >= 2 and text.startswith("(") and text.endswith(")")
    core = text[1:-1].strip() if negative else text
    if not _DECIMAL_RE.match(core):
        return NAN
    number = float(core)
    if not math.isfinite(number):
        return NAN
    return -number if negative else number


def find_amount(
    rows: Iterable[Mapping[str, Any]],
    pattern: Union[str, Pattern[str]],
    label_key: str = LABEL_KEY,
    amount_key: str = AMOUNT_KEY,
) -> float:
    if isinstance(pattern, str):
        pattern = re.compile(pattern)
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        label = str(row.get(label_key) or "")
        if pattern.search(label):
            return parse_amount(row.get(amount_key))
    return NAN


def resolve_accounts(rows: List[Mapping[str, Any]]) -> Dict[str, float]:
    return {name: find_amount(rows, pattern) for name, pattern in ACCOUNT_PATTERNS}


def derive_metrics(rows: List[Mapping[str, Any]]) -> Dict[str, float]:
    accounts = resolve_accounts(rows or [])
    calculator = FinancialRatioCalculator(accounts)
    derived = calculator.calculate_all_ratios()
    derived["ebitda"] = calculator.calculate_ebitda()

    metrics: Dict[str, float] = {}
    for field in METRIC_FIELDS:
        metrics[field] = derived[field] if field in derived else accounts[field]
    return metrics
