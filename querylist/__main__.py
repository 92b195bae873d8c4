#!/usr/bin/env python3
"""
Run one list query from the command line.

Usage:
    python -m querylist /jobs --search engineer --filter status=open --limit 10
    python -m querylist /applications --page 2 --sort-by updated_at --sort-order asc
    python -m querylist /jobs --public --api-url https://api.example.com
"""

import argparse
import asyncio
import json
import logging
import sys

from querylist.api.client import CollectionClient
from querylist.config import DEFAULTS, ListOptions, get_api_token, get_api_url
from querylist.store import ListStatus, ListStore
from querylist.url_sync import InMemoryAddress

logger = logging.getLogger(__name__)


def _parse_filter(raw: str) -> tuple[str, object]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Filters look like key=value, got {raw!r}")
    if value in ("true", "false"):
        return key, value == "true"
    return key, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query a paginated collection endpoint")
    parser.add_argument("endpoint", help="Collection path, e.g. /jobs")
    parser.add_argument("--api-url", type=str, default=None, help="API base URL")
    parser.add_argument("--search", default="", help="Free-text search")
    parser.add_argument("--filter", dest="filters", action="append", type=_parse_filter, default=[])
    parser.add_argument("--sort-by", default=DEFAULTS["sort_by"])
    parser.add_argument("--sort-order", choices=("asc", "desc"), default=DEFAULTS["sort_order"])
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--limit", type=int, default=DEFAULTS["limit"])
    parser.add_argument("--include", default=None, help="Related data to embed (comma-separated)")
    parser.add_argument("--public", action="store_true", help="Do not send a bearer token")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


async def run(args: argparse.Namespace) -> int:
    options = ListOptions(
        endpoint=args.endpoint,
        default_sort_by=args.sort_by,
        default_sort_order=args.sort_order,
        default_limit=args.limit,
        include=args.include,
    )
    address = InMemoryAddress({"search": args.search, "page": str(args.page)})
    if args.filters:
        address.replace({**address.params(), "filters": json.dumps(dict(args.filters))})

    async with CollectionClient(
        get_api_url(args.api_url), token_supplier=get_api_token, require_auth=not args.public
    ) as client:
        store = ListStore.for_endpoint(client, options, address=address)
        await store.mount()
        await store.settle()

        if store.status in (ListStatus.FAILED, ListStatus.STALE):
            logger.error(f"Failed to load {args.endpoint}: {store.error_message}")
            return 1

        for item in store.items:
            print(json.dumps(item, default=str))
        print(
            f"page {store.state.page}/{max(store.total_pages, 1)} - {store.total} record(s)",
            file=sys.stderr,
        )
        logger.debug(f"{store.requests_issued} request(s) issued for {args.endpoint}")
    return 0


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
