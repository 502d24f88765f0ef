#!/usr/bin/env python3
"""
codoc command line.

Scans a project for tagged doc blocks, renders reports from the result and
launches the HTTP service (see service/app.py).
"""
import os
import sys
import json
import argparse
import ipaddress
import logging
from pathlib import Path
from typing import List, Optional

from ..adapters.workspace import Workspace
from ..core.aggregate import (
    apply_filters,
    filter_block_types,
    filter_text,
    describe_requirements,
    index_by_type,
    index_by_domain,
)
from ..core.errors import CodocError
from ..core.models import DocResult, count_items
from ..core.render import render_json, render_markdown
from ..core.tags import block_title


def _is_loopback_host(host: str) -> bool:
    h = (host or "").strip().lower()
    if h in ("127.0.0.1", "localhost", "::1"):
        return True
    try:
        return ipaddress.ip_address(h).is_loopback
    except ValueError:
        return False


def _get_port() -> int:
    raw = os.environ.get("CODOC_PORT", "")
    if not raw:
        return 8788
    try:
        return int(raw)
    except ValueError:
        print(f"[codoc] Warning: Invalid CODOC_PORT='{raw}', defaulting to 8788", file=sys.stderr)
        return 8788


def _error(msg: str) -> int:
    print(f"[codoc] Error: {msg}", file=sys.stderr)
    return 1


def _open_workspace(args) -> Workspace:
    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        raise CodocError(f"Project root is not a directory: {root}")
    config_path = Path(args.config).expanduser() if args.config else None
    return Workspace.open(root, config_path)


def _load_result(ws: Workspace, cached: bool) -> DocResult:
    if cached:
        if ws.load_cached() is None:
            raise CodocError("No cached scan result; run 'codoc scan' first")
        return ws.result or {}
    return ws.scan()


def cmd_scan(args) -> int:
    ws = _open_workspace(args)
    result = ws.scan(since=args.since, use_cache=not args.no_cache)

    if args.json:
        print(json.dumps({
            "timestamp": ws.timestamp,
            "requirements": len(result),
            "items": count_items(result),
            "stats": ws.stats.to_dict(),
        }, indent=2))
        return 0

    stats = ws.stats
    print(f"[codoc] scanned {stats.scanned} files ({stats.skipped} skipped, {stats.excluded} excluded)")
    print(f"[codoc] {len(result)} requirements, {count_items(result)} doc blocks")
    if ws.timestamp:
        print(f"[codoc] cached: {ws.cache.cache_file}")
    return 0


def cmd_report(args) -> int:
    ws = _open_workspace(args)
    result = _load_result(ws, args.cached)
    result = apply_filters(result, args.req)
    result = filter_block_types(result, args.type)
    result = filter_text(result, args.grep)

    if args.format == "json":
        text = render_json(result)
    else:
        text = render_markdown(result, ws.config.links)

    if args.output:
        out = Path(args.output).expanduser()
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(text, encoding="utf-8")
        except OSError as e:
            raise CodocError(f"Could not write {out}: {e}") from e
        print(f"[codoc] report written to {out}", file=sys.stderr)
    else:
        print(text)
    return 0


def cmd_list(args) -> int:
    ws = _open_workspace(args)
    result = _load_result(ws, args.cached)

    if args.by == "type":
        for block_type, entries in index_by_type(result).items():
            print(f"{block_title(block_type)} ({len(entries)})")
            for req_id, item in entries:
                print(f"  {req_id}  {item.title}  {item.file}:{item.line}")
    elif args.by == "domain":
        for domain, entries in index_by_domain(result).items():
            print(f"{domain} ({len(entries)})")
            for req_id, block_type, item in entries:
                print(f"  {req_id}  @{block_type}  {item.title}  {item.file}:{item.line}")
    else:
        for req_id, description in describe_requirements(result):
            print(f"{req_id}\t{description}")
    return 0


def cmd_cache(args) -> int:
    ws = _open_workspace(args)
    if args.action == "clear":
        if not ws.cache.clear():
            return _error(f"Could not remove {ws.cache.cache_file}")
        print(f"[codoc] cache cleared: {ws.cache.cache_file}")
        return 0

    status = ws.cache.status()
    if not status["exists"]:
        print(f"[codoc] no cache at {status['path']}")
    else:
        print(f"[codoc] cache: {status['path']}")
        print(f"[codoc] timestamp: {status['timestamp']}")
        print(f"[codoc] requirements: {status['requirements']}")
    return 0


def cmd_serve(args) -> int:
    token = args.token
    if not _is_loopback_host(args.host) and not token:
        print(f"[codoc] Security Error: Refusing to bind to non-loopback host '{args.host}' without a token.", file=sys.stderr)
        print("[codoc] Hint: Set --token or CODOC_TOKEN.", file=sys.stderr)
        return 1

    import uvicorn
    from ..service.app import app, init_service

    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        raise CodocError(f"Project root is not a directory: {root}")
    config_path = Path(args.config).expanduser() if args.config else None
    init_service(root, token=token, config_path=config_path)

    print(f"[codoc] serving on http://{args.host}:{args.port}", flush=True)
    print(f"[codoc] root: {root}", flush=True)
    print(f"[codoc] token: {'(set)' if token else '(not set)'}", flush=True)

    uvicorn.run(app, host=args.host, port=args.port, log_level="info")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="codoc", description="Extract tagged doc blocks from source comments.")
    parser.add_argument("--root", default=os.environ.get("CODOC_ROOT", "."), help="Project root (default: cwd)")
    parser.add_argument("--config", default=None, help="Config file (default: <root>/.codoc.yml)")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("scan", help="Scan the project and cache the result")
    p.add_argument("--since", default=None, help="Only files changed since this git ref")
    p.add_argument("--no-cache", action="store_true", help="Do not write the cache")
    p.add_argument("--json", action="store_true", help="Print the summary as JSON")
    p.set_defaults(func=cmd_scan)

    p = sub.add_parser("report", help="Render a report")
    p.add_argument("--req", nargs="+", default=None, metavar="ID")
    p.add_argument("--type", nargs="+", default=None, metavar="T")
    p.add_argument("--grep", default=None, metavar="TEXT", help="Keep items whose title or content contains TEXT")
    p.add_argument("--format", choices=["md", "json"], default="md")
    p.add_argument("--output", "-o", default=None)
    p.add_argument("--cached", action="store_true", help="Use the cached result instead of scanning")
    p.set_defaults(func=cmd_report)

    p = sub.add_parser("list", help="Print an index of the result")
    p.add_argument("--by", choices=["req", "type", "domain"], default="req")
    p.add_argument("--cached", action="store_true")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("cache", help="Inspect or clear the scan cache")
    p.add_argument("action", choices=["status", "clear"])
    p.set_defaults(func=cmd_cache)

    p = sub.add_parser("serve", help="Run the HTTP service")
    p.add_argument("--host", default=os.environ.get("CODOC_HOST", "127.0.0.1"))
    p.add_argument("--port", type=int, default=_get_port())
    p.add_argument("--token", default=os.environ.get("CODOC_TOKEN"), help="Auth token (Required for non-loopback)")
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )
    try:
        return args.func(args)
    except CodocError as e:
        return _error(str(e))


if __name__ == "__main__":
    sys.exit(main())
