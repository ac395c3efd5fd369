"""Seed the corporate code store from OpenDART's CORPCODE.xml."""

import argparse
import sys
from pathlib import Path

from dartlens.config import load_config
from dartlens.corp_store import CorpCodeStore, parse_corp_code_xml
from dartlens.dart_client import DartClient


def main(argv=None) -> int:
    config = load_config()
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--xml", type=Path, help="local CORPCODE.xml; downloaded from OpenDART when omitted")
    parser.add_argument("--db", type=Path, default=Path(config.corp_db_path), help="target JSON store")
    parser.add_argument("--api-key", default=config.dart_api_key, help="OpenDART API key for download")
    args = parser.parse_args(argv)

    if args.xml:
        if not args.xml.exists():
            print(f"XML not found: {args.xml}", file=sys.stderr)
            return 1
        xml_text = args.xml.read_text(encoding="utf-8")
    else:
        client = DartClient(api_key=args.api_key, base_url=config.dart_base_url, timeout=config.http_timeout_seconds)
        xml_text = client.download_corp_codes()

    entries = parse_corp_code_xml(xml_text)
    if not entries:
        print("Parsed 0 corp entries. Check XML structure.", file=sys.stderr)
        return 1

    count = CorpCodeStore(args.db).replace_all(entries)
    print(f"Seeded {count} corps to {args.db}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
