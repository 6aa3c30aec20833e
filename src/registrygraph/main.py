from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional, TextIO

from registrygraph.adapters import adapters_by_type, new_adapters
from registrygraph.config.logging_config import init_logging
from registrygraph.config.settings import load_settings
from registrygraph.errors import ErrorType, QueryError, UnexpectedResponseError
from registrygraph.items import GLOBAL_SCOPE, QueryMethod, items_to_dicts

logger = logging.getLogger("registrygraph.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="registrygraph",
        description="Resolve RDAP and DNS identifiers into graph items",
    )
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "--scope", default=GLOBAL_SCOPE, help="Scope to query (default: global)"
    )
    parser.add_argument(
        "--ignore-cache",
        action="store_true",
        help="Skip cached results; fresh results are still stored.",
    )
    parser.add_argument(
        "type", help="Item type, e.g. rdap-ip-network, rdap-domain, dns, ip"
    )
    parser.add_argument(
        "method",
        type=str.upper,
        choices=[m.value for m in QueryMethod],
        help="Query method",
    )
    parser.add_argument("query", nargs="?", default=None, help="Query string")
    return parser


def main(argv: Optional[List[str]] = None, out: Optional[TextIO] = None) -> int:
    """
    Brief: Command-line entry point running a single query.

    Inputs:
      - argv: Command-line arguments (sys.argv[1:] when None).
      - out: Stream the JSON result is written to (stdout when None).

    Outputs:
      - int exit code: 0 on success, 1 on a query or config error, 2 on an
        unknown item type or a missing query.

    Example use:
        CLI:
            registrygraph rdap-ip-network SEARCH 1.1.1.1
            registrygraph --config config.yaml dns SEARCH www.example.com
    """
    out = out or sys.stdout
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    init_logging(settings.logging.model_dump())
    if args.config:
        logger.info("Loaded config from %s", args.config)

    adapters = adapters_by_type(new_adapters(settings))
    adapter = adapters.get(args.type)
    if adapter is None:
        print(
            f"Unknown item type {args.type!r}; known types: "
            f"{', '.join(sorted({a.item_type for a in adapters.values()}))}",
            file=sys.stderr,
        )
        return 2

    method = QueryMethod(args.method)
    if method is not QueryMethod.LIST and not args.query:
        print(f"{method.value} requires a query", file=sys.stderr)
        return 2

    try:
        if method is QueryMethod.GET:
            items = [adapter.get(args.scope, args.query, args.ignore_cache)]
        elif method is QueryMethod.LIST:
            items = adapter.list(args.scope, args.ignore_cache)
        else:
            items = adapter.search(args.scope, args.query, args.ignore_cache)
    except QueryError as exc:
        json.dump({"error": exc.to_dict()}, out, indent=2)
        out.write("\n")
        return 1
    except UnexpectedResponseError as exc:
        logger.error("unexpected response for %s %s: %s", args.type, args.query, exc)
        err = QueryError(
            ErrorType.OTHER,
            str(exc),
            scope=args.scope,
            source_name=adapter.source_name,
            item_type=adapter.item_type,
        )
        json.dump({"error": err.to_dict()}, out, indent=2)
        out.write("\n")
        return 1

    json.dump(items_to_dicts(items), out, indent=2)
    out.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
