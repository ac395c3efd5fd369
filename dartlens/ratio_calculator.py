import math
from typing import Any, Dict


NAN = math.nan


def is_finite(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def ratio(numerator: Any, denominator: Any) -> float:
    """Percentage of numerator over denominator, NaN unless both are finite and denominator != 0."""
    if not is_finite(numerator) or not is_finite(denominator) or denominator == 0:
        return NAN
    result = numerator / denominator * 100
    return result if is_finite(result) else NAN


def sum_available(*values: Any) -> float:
    total = sum((float(v) for v in values if is_finite(v)), 0.0)
    return total if is_finite(total) else NAN


class FinancialRatioCalculator:
    def __init__(self, accounts: Dict[str, float]) -> None:
        self.accounts = accounts or {}

    def _get(self, key: str) -> float:
        return self.accounts.get(key, NAN)

    def calculate_ebitda(self) -> float:
        operating_income = self._get("operatingIncome")
        # Missing D&A lines count as zero so EBITDA stays available.
        da = sum_available(self._get("depreciation"), self._get("amortization"))
        if not is_finite(da):
            return NAN
        ebitda = (float(operating_income) if is_finite(operating_income) else 0.0) + da
        return ebitda if is_finite(ebitda) else NAN

    def calculate_leverage_ratios(self) -> Dict[str, float]:
        return {
            "debtRatio": ratio(self._get("totalLiabilities"), self._get("totalEquity")),
            "reserveRatio": ratio(self._get("retainedEarnings"), self._get("capital")),
        }

    def calculate_profitability_ratios(self) -> Dict[str, float]:
        net_income = self._get("netIncome")
        return {
            "roa": ratio(net_income, self._get("totalAssets")),
            "roe": ratio(net_income, self._get("totalEquity")),
        }

    def calculate_all_ratios(self) -> Dict[str, float]:
        ratios: Dict[str, float] = {}
        ratios.update(self.calculate_leverage_ratios())
        ratios.update(self.calculate_profitability_ratios())
        return ratios
