from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from adapters.base import AdapterError
from datasource import service
from utils.logging_config import configure_logging


def _load_source(path: str) -> Dict[str, Any]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Data source file must contain a JSON object: {path}")
    return payload


def _load_query(args: argparse.Namespace) -> Any:
    if args.query_file:
        text = Path(args.query_file).read_text(encoding="utf-8")
    elif args.query is not None:
        text = args.query
    else:
        raise ValueError("Provide --query or --query-file")
    stripped = text.strip()
    # Structured MongoDB operations are passed through as objects.
    if stripped.startswith("{"):
        return json.loads(stripped)
    return text


def _parse_param(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Test, query or introspect a data source")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    test_cmd = sub.add_parser("test", help="Check that the data source is reachable")
    test_cmd.add_argument("--source", required=True, help="Path to a JSON data source record")

    query_cmd = sub.add_parser("query", help="Execute a query and print the normalized result")
    query_cmd.add_argument("--source", required=True, help="Path to a JSON data source record")
    query_cmd.add_argument("--query", default=None, help="SQL text or a JSON MongoDB operation")
    query_cmd.add_argument("--query-file", default=None)
    query_cmd.add_argument(
        "--param",
        action="append",
        default=[],
        help="Positional parameter; JSON literals are decoded. Repeatable.",
    )
    query_cmd.add_argument("--timeout", type=float, default=None, help="Timeout in seconds")

    schema_cmd = sub.add_parser("schema", help="Print tables/collections and their columns/fields")
    schema_cmd.add_argument("--source", required=True, help="Path to a JSON data source record")
    schema_cmd.add_argument("--timeout", type=float, default=None, help="Timeout in seconds")
    return parser


async def _run(args: argparse.Namespace) -> Dict[str, Any]:
    source = _load_source(args.source)
    if args.command == "test":
        return (await service.test_connection(source)).to_dict()
    if args.command == "query":
        params: List[Any] = [_parse_param(raw) for raw in args.param]
        result = await service.execute_query(source, _load_query(args), params=params or None, timeout=args.timeout)
        return result.to_dict()
    schema = await service.get_schema_info(source, timeout=args.timeout)
    return schema.to_dict()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        configure_logging(args.log_level)
        payload = asyncio.run(_run(args))
    except (AdapterError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(payload, indent=2, default=str))
    if args.command == "test" and not payload["success"]:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
