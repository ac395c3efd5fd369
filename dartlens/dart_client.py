import io
import zipfile
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

from .errors import InputValidationError, UpstreamError
from .run_logger import log_step


DEFAULT_BASE_URL = "https://opendart.fss.or.kr/api"
PRIMARY_ENDPOINT = "fnlttSinglAcnt.json"
FALLBACK_ENDPOINT = "fnlttSinglAcntAll.json"
CORP_CODE_ENDPOINT = "corpCode.xml"

SUCCESS_STATUS = "000"
UNAVAILABLE_STATUS = "-1"

REPORT_CODES = {
    "11011": "사업보고서",
    "11012": "반기보고서",
    "11013": "1분기보고서",
    "11014": "3분기보고서",
}

FS_DIVISIONS = {
    "CFS": "연결재무제표",
    "OFS": "재무제표",
}

STATUS_MESSAGES = {
    "000": "정상",
    "010": "등록되지 않은 키입니다.",
    "011": "사용할 수 없는 키입니다.",
    "013": "조회된 데이타가 없습니다.",
    "020": "요청 제한을 초과하였습니다.",
    "100": "필드의 부적절한 값입니다.",
    "800": "시스템 점검으로 인한 서비스가 중지 중입니다.",
    "900": "정의되지 않은 오류가 발생하였습니다.",
}


@dataclass(frozen=True)
class FilingQuery:
    corp_code: str
    bsns_year: str
    reprt_code: str
    fs_div: Optional[str] = None
    sj_div: Optional[str] = None

    def validate(self) -> None:
        missing = [
            name
            for name in ("corp_code", "bsns_year", "reprt_code")
            if not str(getattr(self, name) or "").strip()
        ]
        if missing:
            raise InputValidationError("missing_params", f"missing: {', '.join(missing)}")

    def params(self) -> Dict[str, str]:
        raw = {
            "corp_code": self.corp_code,
            "bsns_year": self.bsns_year,
            "reprt_code": self.reprt_code,
            "fs_div": self.fs_div,
            "sj_div": self.sj_div,
        }
        return {k: str(v).strip() for k, v in raw.items() if v is not None and str(v).strip()}


class DartClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 20,
        get_fn: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._get = get_fn or requests.get

    def _require_key(self) -> None:
        if not self.api_key:
            raise InputValidationError("missing_api_key", "OpenDART API key is not configured")

    def get_primary(self, query: FilingQuery) -> Dict[str, Any]:
        return self._get_filing(PRIMARY_ENDPOINT, query)

    def get_fallback(self, query: FilingQuery) -> Dict[str, Any]:
        return self._get_filing(FALLBACK_ENDPOINT, query)

    def _get_filing(self, endpoint: str, query: FilingQuery) -> Dict[str, Any]:
        query.validate()
        self._require_key()
        params = {"crtfc_key": self.api_key}
        params.update(query.params())
        try:
            resp = self._get(f"{self.base_url}/{endpoint}", params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            return {"status": UNAVAILABLE_STATUS, "message": str(exc), "list": []}
        return to_filing_result(payload)

    def download_corp_codes(self) -> str:
        """Download the corpCode.xml archive and return the XML document it contains."""
        self._require_key()
        try:
            resp = self._get(
                f"{self.base_url}/{CORP_CODE_ENDPOINT}",
                params={"crtfc_key": self.api_key},
                timeout=max(self.timeout, 60),
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise UpstreamError(f"corpCode download failed: {exc}") from exc

        try:
            with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
                names = [n for n in zf.namelist() if n.lower().endswith(".xml")]
                if not names:
                    raise UpstreamError("corpCode archive has no XML document")
                return zf.read(names[0]).decode("utf-8")
        except zipfile.BadZipFile as exc:
            snippet = resp.content[:200].decode("utf-8", errors="ignore")
            raise UpstreamError(f"corpCode response is not a zip archive: {snippet}") from exc


def to_filing_result(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        payload = {}
    rows = payload.get("list")
    status = str(payload.get("status") or "")
    return {
        "status": status,
        "message": str(payload.get("message") or STATUS_MESSAGES.get(status, "")),
        "list": list(rows) if isinstance(rows, list) else [],
    }


def is_acceptable(result: Dict[str, Any]) -> bool:
    rows: List[Any] = result.get("list") or []
    return result.get("status") == SUCCESS_STATUS and len(rows) > 0


def fetch_filing_rows(client, query: FilingQuery, log_dir=None) -> Dict[str, Any]:
    """Query the single-account endpoint, falling back once to the full-account endpoint."""
    query.validate()
    primary = client.get_primary(query)
    if is_acceptable(primary):
        log_step(log_dir, "filing", {"source": "primary", "corp_code": query.corp_code, "rows": len(primary["list"])})
        return primary

    fallback = client.get_fallback(query)
    log_step(
        log_dir,
        "filing",
        {
            "source": "fallback",
            "corp_code": query.corp_code,
            "primary_status": primary.get("status"),
            "status": fallback.get("status"),
            "rows": len(fallback.get("list") or []),
        },
    )
    return fallback
