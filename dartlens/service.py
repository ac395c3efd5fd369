from typing import Any, Dict, List, Optional

from .dart_client import FilingQuery, SUCCESS_STATUS, fetch_filing_rows
from .financials import derive_metrics
from .market_data import fetch_stock_metrics
from .ratio_calculator import is_finite
from .run_logger import log_step


EXPLAIN_SYSTEM_PROMPT = "당신은 기업 재무제표를 일반 투자자에게 설명하는 애널리스트입니다."
EXPLAIN_FALLBACK_TEXT = "설명을 생성하지 못했습니다."


def build_metrics_report(
    query: FilingQuery,
    dart_client,
    corp_store=None,
    market_provider=None,
    log_dir=None,
) -> Dict[str, Any]:
    query.validate()
    filing = fetch_filing_rows(dart_client, query, log_dir=log_dir)
    rows: List[Dict[str, Any]] = filing.get("list") or []
    metrics = derive_metrics(rows)

    corp = corp_store.find(query.corp_code) if corp_store is not None else None
    stock = fetch_stock_metrics(market_provider, (corp or {}).get("stock_code"), log_dir=log_dir)

    log_step(
        log_dir,
        "metrics",
        {"corp_code": query.corp_code, "bsns_year": query.bsns_year, "reprt_code": query.reprt_code, "metrics": metrics},
    )
    return {
        "status": filing.get("status") or SUCCESS_STATUS,
        "message": filing.get("message") or "OK",
        "list": rows,
        "metrics": metrics,
        "stock": stock,
    }


def _fmt(value: Any) -> str:
    if not is_finite(value):
        return "N/A"
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.4f}".rstrip("0").rstrip(".")
    return str(int(value))


def build_explain_prompt(report: Dict[str, Any], corp_name: str, query: FilingQuery) -> str:
    m = report.get("metrics") or {}
    stock = report.get("stock") or {}
    if stock.get("stock_code"):
        stock_line = f"종목지표: PER={_fmt(stock.get('per'))}, PBR={_fmt(stock.get('pbr'))}, EPS={_fmt(stock.get('eps'))}"
    else:
        stock_line = "종목지표: 비상장 또는 종목코드 없음"

    return "\n".join(
        [
            f"다음 회사의 {query.bsns_year}년도 보고서({query.reprt_code}) 재무정보를 한국어로 간단하고 이해하기 쉽게 요약해 주세요.",
            f"회사: {corp_name} ({query.corp_code})",
            "핵심지표(원 단위):",
            f"- 자산총계: {_fmt(m.get('totalAssets'))}",
            f"- 부채총계: {_fmt(m.get('totalLiabilities'))}",
            f"- 자본총계: {_fmt(m.get('totalEquity'))}",
            f"- 매출액: {_fmt(m.get('revenue'))}",
            f"- 영업이익: {_fmt(m.get('operatingIncome'))}",
            f"- 당기순이익: {_fmt(m.get('netIncome'))}",
            f"- EBITDA: {_fmt(m.get('ebitda'))}",
            (
                f"재무비율(%): 부채비율={_fmt(m.get('debtRatio'))}, 유보율={_fmt(m.get('reserveRatio'))}, "
                f"ROA={_fmt(m.get('roa'))}, ROE={_fmt(m.get('roe'))}"
            ),
            stock_line,
            "설명 형식: 1) 전반 요약 2) 수익성/성장성 3) 재무건전성 4) 종합 코멘트",
        ]
    )


def explain_metrics(
    report: Dict[str, Any],
    query: FilingQuery,
    llm,
    corp_name: Optional[str] = None,
    log_dir=None,
) -> str:
    prompt = build_explain_prompt(report, corp_name or query.corp_code, query)
    text = (llm.generate_text(EXPLAIN_SYSTEM_PROMPT, prompt) or "").strip()
    log_step(log_dir, "explain", {"corp_code": query.corp_code, "chars": len(text)})
    return text or EXPLAIN_FALLBACK_TEXT
