import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parents[1]


@dataclass
class AppConfig:
    dart_api_key: str
    dart_base_url: str
    http_timeout_seconds: int
    llm_provider: str
    llm_model_name: str
    llm_api_key: str
    llm_base_url: str
    llm_timeout_seconds: int
    llm_max_retries: int
    corp_db_path: str
    log_dir: str


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _project_path(value: str) -> str:
    path = Path(value).expanduser()
    return str(path if path.is_absolute() else BASE_DIR / path)


def _llm_api_key(provider: str) -> str:
    if provider == "gemini":
        return os.getenv("GEMINI_API_KEY", "") or os.getenv("LLM_API_KEY", "")
    return os.getenv("LLM_API_KEY", "")


def load_config() -> AppConfig:
    load_dotenv()
    provider = os.getenv("LLM_PROVIDER", "gemini").strip().lower()
    if provider not in {"gemini", "deepseek"}:
        provider = "gemini"

    http_timeout = max(1, min(_int_env("HTTP_TIMEOUT_SECONDS", 20), 120))
    default_model = "gemini-1.5-flash" if provider == "gemini" else "deepseek-chat"
    default_base_url = (
        "https://generativelanguage.googleapis.com"
        if provider == "gemini"
        else "https://api.deepseek.com"
    )

    return AppConfig(
        dart_api_key=os.getenv("OPEN_DART_API_KEY", ""),
        dart_base_url=os.getenv("OPEN_DART_BASE_URL", "https://opendart.fss.or.kr/api"),
        http_timeout_seconds=http_timeout,
        llm_provider=provider,
        llm_model_name=os.getenv("LLM_MODEL_NAME", default_model),
        llm_api_key=_llm_api_key(provider),
        llm_base_url=os.getenv("LLM_BASE_URL", default_base_url),
        llm_timeout_seconds=_int_env("LLM_TIMEOUT_SECONDS", 60),
        llm_max_retries=_int_env("LLM_MAX_RETRIES", 2),
        corp_db_path=_project_path(os.getenv("CORP_DB_PATH", "data/corp_codes.json")),
        log_dir=os.getenv("LOG_DIR", "logs"),
    )
