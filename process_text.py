#!/usr/bin/env python3
"""Command-line front end for rich text processing.

  process_text.py process [FILE] [--no-fetch] [--identifiers] [--previews FMT]
  process_text.py validate KIND VALUE [VALUE ...]
  process_text.py describe [KIND]

`process` prints entities and link metadata as JSON. `validate` prints one
result per value and exits 1 if any value is invalid. `describe` prints what
each identifier kind accepts, with examples.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from dotenv import load_dotenv

from richtext.cache.metadata_cache import MetadataCache
from richtext.config import CacheConfig, FetchConfig
from richtext.errors import RichTextError
from richtext.links.opengraph import OpenGraphFetcher
from richtext.links.previews import PREVIEW_FORMATS
from richtext.pipeline.processor import Processor
from richtext.validation.dispatcher import IdentifierKind, default_dispatcher


logger = logging.getLogger("process_text")


def _build_cache(pg_dsn: str) -> MetadataCache:
    store = None
    if pg_dsn:
        from richtext.storage.postgres_cache import PostgresCacheStore
        from richtext.storage.postgres_schema import ensure_postgres_schema

        ensure_postgres_schema(pg_dsn)
        store = PostgresCacheStore(pg_dsn=pg_dsn)
    return MetadataCache(OpenGraphFetcher(FetchConfig.from_env()), store=store, config=CacheConfig.from_env())


def _cmd_process(args: argparse.Namespace) -> int:
    if args.file and args.file != "-":
        with open(args.file, "r", encoding="utf-8") as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    cache = None if args.no_fetch else _build_cache(args.pg_dsn)
    try:
        processor = Processor(cache, fetch_wait=args.wait)
        result = processor.process(text, fetch=not args.no_fetch, scan_identifiers=args.identifiers)
    finally:
        if cache is not None:
            cache.close(wait=False)

    payload = result.to_dict()
    if args.previews:
        payload["previews"] = result.render_link_previews(args.previews)
    print(json.dumps(payload, indent=2 if args.pretty else None, ensure_ascii=False))
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    results = Processor().batch_validate(args.kind, args.values)
    for res in results:
        print(json.dumps(res.to_dict(), ensure_ascii=False))
    return 0 if all(r.valid for r in results) else 1


def _cmd_describe(args: argparse.Namespace) -> int:
    dispatcher = default_dispatcher()
    infos = [dispatcher.describe(args.kind)] if args.kind else dispatcher.describe_all()
    for info in infos:
        print(json.dumps(info.to_dict(), ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Extract entities and link metadata from text")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("process", help="Extract entities (and link metadata) from text")
    p.add_argument("file", nargs="?", default="-", help="Input file (default: stdin)")
    p.add_argument("--no-fetch", action="store_true", help="Skip link metadata fetching")
    p.add_argument("--identifiers", action="store_true", help="Also scan for valid identifiers (ISBN, IBAN, ...)")
    p.add_argument("--wait", type=float, default=None, help="Max seconds to wait for link metadata")
    p.add_argument("--pg-dsn", default=os.environ.get("RTE_PG_DSN", ""), help="Postgres DSN for the metadata cache (default: in-memory)")
    p.add_argument("--pretty", action="store_true", help="Indent JSON output")
    p.add_argument("--previews", choices=PREVIEW_FORMATS, default=None, help="Also render link preview cards")
    p.set_defaults(func=_cmd_process)

    v = sub.add_parser("validate", help="Validate identifiers of one kind")
    v.add_argument("kind", help="One of: " + ", ".join(k.value for k in IdentifierKind))
    v.add_argument("values", nargs="+")
    v.set_defaults(func=_cmd_validate)

    d = sub.add_parser("describe", help="Show description, pattern and examples per identifier kind")
    d.add_argument("kind", nargs="?", default=None)
    d.set_defaults(func=_cmd_describe)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return args.func(args)
    except RichTextError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
