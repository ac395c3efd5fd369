from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import load_config
from .corp_store import CorpCodeStore
from .dart_client import DartClient, FilingQuery, fetch_filing_rows
from .errors import InputValidationError
from .llm_client import LLMClient
from .market_data import NaverFinanceClient
from .run_logger import log_step, to_json_safe
from .service import build_metrics_report, explain_metrics


def _error(status_code: int, kind: str, detail: Optional[str] = None) -> JSONResponse:
    body = {"error": kind}
    if detail is not None:
        body["detail"] = detail
    return JSONResponse(body, status_code=status_code)


def create_app(
    dart_client_factory: Optional[Callable[[str], Any]] = None,
    llm_factory: Optional[Callable[[str, str, str, str], Any]] = None,
    market_provider: Any = None,
    corp_store: Any = None,
) -> FastAPI:
    app = FastAPI(title="DartLens")
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"], allow_headers=["*"])

    use_default_llm_factory = llm_factory is None

    if dart_client_factory is None:
        def dart_client_factory(api_key: str):
            config = load_config()
            return DartClient(
                api_key=api_key,
                base_url=config.dart_base_url,
                timeout=config.http_timeout_seconds,
            )

    if use_default_llm_factory:
        def llm_factory(provider: str, model: str, api_key: str, base_url: str):
            config = load_config()
            return LLMClient(
                provider=provider,
                model=model,
                api_key=api_key,
                base_url=base_url,
                timeout=config.llm_timeout_seconds,
                max_retries=config.llm_max_retries,
            )

    if market_provider is None:
        market_provider = NaverFinanceClient(timeout=load_config().http_timeout_seconds)
    if corp_store is None:
        corp_store = CorpCodeStore(load_config().corp_db_path)

    def _dart_client_for(query: FilingQuery, api_key: str):
        query.validate()
        key = (api_key or load_config().dart_api_key).strip()
        if not key:
            raise InputValidationError("missing_api_key")
        return dart_client_factory(key)

    @app.middleware("http")
    async def no_store(request: Request, call_next):
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store"
        return response

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    @app.get("/api/search")
    def search(q: str = ""):
        try:
            return JSONResponse(corp_store.search(q))
        except Exception as exc:
            return _error(500, "search_failed", str(exc))

    @app.get("/api/financials")
    def financials(
        corp_code: str = "",
        bsns_year: str = "",
        reprt_code: str = "",
        fs_div: str = "",
        sj_div: str = "",
        api_key: str = "",
    ):
        query = FilingQuery(corp_code, bsns_year, reprt_code, fs_div or None, sj_div or None)
        try:
            client = _dart_client_for(query, api_key)
            result = fetch_filing_rows(client, query, log_dir=load_config().log_dir or None)
            return JSONResponse(to_json_safe(result))
        except InputValidationError as exc:
            return _error(400, exc.kind)
        except Exception as exc:
            return _error(500, "fetch_failed", str(exc))

    @app.get("/api/metrics")
    def metrics(corp_code: str = "", bsns_year: str = "", reprt_code: str = "", api_key: str = ""):
        query = FilingQuery(corp_code, bsns_year, reprt_code)
        try:
            client = _dart_client_for(query, api_key)
            report = build_metrics_report(
                query,
                client,
                corp_store=corp_store,
                market_provider=market_provider,
                log_dir=load_config().log_dir or None,
            )
            return JSONResponse(to_json_safe(report))
        except InputValidationError as exc:
            return _error(400, exc.kind)
        except Exception as exc:
            return _error(500, "metrics_failed", str(exc))

    @app.get("/api/explain")
    def explain(corp_code: str = "", bsns_year: str = "", reprt_code: str = "", api_key: str = ""):
        config = load_config()
        log_dir = config.log_dir or None
        query = FilingQuery(corp_code, bsns_year, reprt_code)
        try:
            client = _dart_client_for(query, api_key)
            if not config.llm_api_key and use_default_llm_factory:
                raise InputValidationError("missing_llm_key")
            report = build_metrics_report(
                query,
                client,
                corp_store=corp_store,
                market_provider=market_provider,
                log_dir=log_dir,
            )
            corp = corp_store.find(query.corp_code) or {}
            llm = llm_factory(config.llm_provider, config.llm_model_name, config.llm_api_key, config.llm_base_url)
            text = explain_metrics(report, query, llm, corp_name=corp.get("corp_name"), log_dir=log_dir)
            return JSONResponse({"status": "000", "text": text})
        except InputValidationError as exc:
            return _error(400, exc.kind)
        except Exception as exc:
            log_step(log_dir, "explain_failed", {"corp_code": corp_code, "error": str(exc)})
            return _error(500, "explain_failed", str(exc))

    return app


app = create_app()
