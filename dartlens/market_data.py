import re
from typing import Any, Callable, Dict, Mapping, Optional

import requests
from bs4 import BeautifulSoup

from .ratio_calculator import NAN, is_finite
from .run_logger import log_step


NAVER_ITEM_URL = "https://finance.naver.com/item/main.naver"
USER_AGENT = "Mozilla/5.0"
STOCK_CODE_RE = re.compile(r"^\d{6}$")
NUMBER_RE = re.compile(r"-?\d[\d,]*(?:\.\d+)?")
MARKET_FIELDS = ("per", "pbr", "eps")


def parse_market_number(text: Any) -> float:
    if not text:
        return NAN
    cleaned = str(text).replace(",", "").strip()
    try:
        value = float(cleaned)
    except ValueError:
        return NAN
    return value if is_finite(value) else NAN


def parse_market_metrics(html: str) -> Dict[str, float]:
    soup = BeautifulSoup(html, "html.parser")
    metrics: Dict[str, float] = {}
    for field in MARKET_FIELDS:
        node = soup.select_one(f"#_{field}")
        metrics[field] = parse_market_number(node.get_text() if node else "")

    for field in MARKET_FIELDS:
        if is_finite(metrics[field]):
            continue
        label = field.upper()
        for tr in soup.select("table.per_table tr"):
            th = tr.find("th")
            if th is None or label not in th.get_text():
                continue
            td = tr.find("td")
            hit = NUMBER_RE.search(td.get_text() if td else "")
            candidate = parse_market_number(hit.group(0) if hit else "")
            if is_finite(candidate):
                metrics[field] = candidate
    return metrics


class NaverFinanceClient:
    def __init__(
        self,
        timeout: int = 20,
        base_url: str = NAVER_ITEM_URL,
        get_fn: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.timeout = timeout
        self.base_url = base_url
        self._get = get_fn or requests.get

    def get_market_metrics(self, stock_code: str) -> Dict[str, float]:
        resp = self._get(
            self.base_url,
            params={"code": stock_code},
            headers={"User-Agent": USER_AGENT},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return parse_market_metrics(resp.text)


def normalize_stock_code(stock_code: Any) -> Optional[str]:
    code = str(stock_code or "").strip()
    return code or None


def fetch_stock_metrics(provider, stock_code: Any, log_dir=None) -> Dict[str, Any]:
    code = normalize_stock_code(stock_code)
    stock: Dict[str, Any] = {"stock_code": code, "per": NAN, "pbr": NAN, "eps": NAN}
    if provider is None or code is None or not STOCK_CODE_RE.match(code):
        return stock

    try:
        fetched = provider.get_market_metrics(code) or {}
        if not isinstance(fetched, Mapping):
            raise TypeError(f"unexpected market metrics payload: {type(fetched).__name__}")
        values = {field: fetched.get(field) for field in MARKET_FIELDS}
    except Exception as exc:
        log_step(log_dir, "market_metrics_failed", {"stock_code": code, "error": str(exc)})
        return stock

    for field, value in values.items():
        stock[field] = float(value) if is_finite(value) else NAN
    return stock
