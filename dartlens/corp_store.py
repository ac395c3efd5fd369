import json
import threading
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional


CORP_FIELDS = ("corp_code", "corp_name", "corp_eng_name", "stock_code", "modify_date")
SEARCH_LIMIT = 20


def parse_corp_code_xml(xml_text: str) -> List[Dict[str, str]]:
    """Parse OpenDART's CORPCODE.xml (``<result><list>...</list>...</result>``)."""
    root = ET.fromstring(xml_text)
    entries: List[Dict[str, str]] = []
    for node in root.iter("list"):
        entry = {field: (node.findtext(field) or "").strip() for field in CORP_FIELDS}
        if entry["corp_code"]:
            entries.append(entry)
    return entries


class CorpCodeStore:
    def __init__(self, path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._entries: Optional[List[Dict[str, str]]] = None

    def _load(self) -> List[Dict[str, str]]:
        if self._entries is None:
            if self.path.exists():
                data = json.loads(self.path.read_text(encoding="utf-8"))
                self._entries = data if isinstance(data, list) else []
            else:
                self._entries = []
        return self._entries

    def replace_all(self, entries: Iterable[Dict[str, Any]]) -> int:
        by_code: Dict[str, Dict[str, str]] = {}
        for item in entries:
            entry = {field: str(item.get(field) or "").strip() for field in CORP_FIELDS}
            if entry["corp_code"]:
                by_code[entry["corp_code"]] = entry
        docs = list(by_code.values())
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(docs, f, ensure_ascii=False)
            self._entries = docs
        return len(docs)

    def search(self, query: str, limit: int = SEARCH_LIMIT) -> List[Dict[str, str]]:
        needle = (query or "").strip().lower()
        if not needle:
            return []
        with self._lock:
            entries = self._load()
        results: List[Dict[str, str]] = []
        for entry in entries:
            if needle in entry.get("corp_name", "").lower() or needle in entry.get("corp_eng_name", "").lower():
                results.append(
                    {
                        "corp_code": entry["corp_code"],
                        "corp_name": entry.get("corp_name", ""),
                        "stock_code": entry.get("stock_code", ""),
                    }
                )
                if len(results) >= limit:
                    break
        return results

    def find(self, corp_code: str) -> Optional[Dict[str, str]]:
        code = (corp_code or "").strip()
        with self._lock:
            entries = self._load()
        for entry in entries:
            if entry.get("corp_code") == code:
                return entry
        return None
