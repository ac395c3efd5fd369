import math
import streamlit as st

from dartlens.config import load_config
from dartlens.corp_store import CorpCodeStore
from dartlens.dart_client import FS_DIVISIONS, REPORT_CODES, DartClient, FilingQuery
from dartlens.errors import InputValidationError
from dartlens.llm_client import LLMClient
from dartlens.market_data import NaverFinanceClient
from dartlens.service import build_metrics_report, explain_metrics

METRIC_LABELS = {
    "revenue": "매출액",
    "operatingIncome": "영업이익",
    "netIncome": "당기순이익",
    "totalAssets": "자산총계",
    "totalLiabilities": "부채총계",
    "totalEquity": "자본총계",
    "ebitda": "EBITDA",
    "debtRatio": "부채비율(%)",
    "reserveRatio": "유보율(%)",
    "roa": "ROA(%)",
    "roe": "ROE(%)",
}


def _display(value):
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    return f"{value:,.2f}"


st.set_page_config(page_title="DartLens", layout="wide")

st.title("DART 재무지표 조회")

config = load_config()
store = CorpCodeStore(config.corp_db_path)

with st.sidebar:
    st.header("설정")
    api_key = st.text_input("OpenDART API Key", value=config.dart_api_key, type="password")
    bsns_year = st.text_input("사업연도", value="2023")
    reprt_code = st.selectbox(
        "보고서",
        options=list(REPORT_CODES),
        format_func=lambda code: f"{REPORT_CODES[code]} ({code})",
    )
    fs_div = st.selectbox(
        "재무제표 구분",
        options=list(FS_DIVISIONS),
        format_func=lambda div: f"{FS_DIVISIONS[div]} ({div})",
    )
    want_explain = st.checkbox("AI 설명 생성", value=False)

keyword = st.text_input("회사명 검색")
matches = store.search(keyword) if keyword else []
selected = None
if matches:
    selected = st.selectbox(
        "회사 선택",
        options=matches,
        format_func=lambda c: f"{c['corp_name']} ({c['corp_code']}) {c['stock_code']}",
    )
elif keyword:
    st.info("검색 결과가 없습니다. seed_corpcode.py로 회사 코드를 먼저 적재하세요.")

run_btn = st.button("조회")

if run_btn:
    if not selected:
        st.error("회사를 먼저 선택하세요.")
    else:
        query = FilingQuery(selected["corp_code"], bsns_year, reprt_code, fs_div=fs_div)
        client = DartClient(api_key=api_key, base_url=config.dart_base_url, timeout=config.http_timeout_seconds)
        try:
            with st.spinner("재무정보를 불러오는 중..."):
                report = build_metrics_report(
                    query,
                    client,
                    corp_store=store,
                    market_provider=NaverFinanceClient(timeout=config.http_timeout_seconds),
                    log_dir=config.log_dir or None,
                )
        except InputValidationError as exc:
            st.error(f"입력 오류: {exc.kind}")
            st.stop()

        st.caption(f"status={report['status']} message={report['message']}")

        st.subheader("재무지표")
        st.table({METRIC_LABELS[k]: [_display(v)] for k, v in report["metrics"].items()})

        st.subheader("종목지표")
        stock = report["stock"]
        cols = st.columns(3)
        for col, field in zip(cols, ("per", "pbr", "eps")):
            col.metric(field.upper(), _display(stock[field]))

        if want_explain:
            if not config.llm_api_key:
                st.warning("LLM API Key가 설정되지 않았습니다.")
            else:
                llm = LLMClient(
                    provider=config.llm_provider,
                    model=config.llm_model_name,
                    api_key=config.llm_api_key,
                    base_url=config.llm_base_url,
                    timeout=config.llm_timeout_seconds,
                    max_retries=config.llm_max_retries,
                )
                with st.spinner("설명을 생성하는 중..."):
                    text = explain_metrics(report, query, llm, corp_name=selected["corp_name"])
                st.subheader("AI 설명")
                st.write(text)

        with st.expander("원본 계정 목록"):
            st.json(report["list"])
