import json
import math
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union


LOG_FILENAME = "requests.log"


def to_json_safe(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(v) for v in value]
    return value


def log_step(log_dir: Optional[Union[str, Path]], step: str, payload: Dict[str, Any]) -> None:
    if not log_dir:
        return
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    entry = {"ts": time.time(), "step": step, "payload": to_json_safe(payload)}
    with open(log_dir / LOG_FILENAME, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry, ensure_ascii=False) + "\n")
