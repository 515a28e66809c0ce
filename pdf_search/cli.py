#!/usr/bin/env python3
import argparse
import logging
import sys
from pathlib import Path

import yaml

from .app import build_service, load_config, make_resolver
from .errors import PdfSearchError
from .logging_utils import setup_logging

logger = logging.getLogger(__name__)


def _truncate(s: str | None, n: int) -> str:
    if not s:
        return ""
    return s if len(s) <= n else s[:n] + "…"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-search",
        description="Index PDFs into a Chroma collection and run semantic search over them.",
        allow_abbrev=False,
    )
    parser.add_argument("--config", type=str, default="config.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable DEBUG logs (to stderr).")
    parser.add_argument("--quiet", "-q", action="store_true", help="Reduce logs to WARN and above.")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines (stderr).")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_idx = sub.add_parser("index", help="Index all PDFs in a folder")
    p_idx.add_argument("--dir", type=str, default=None, help="Folder with PDFs (default: data/pdfs)")
    p_idx.add_argument(
        "--doc2query-count", type=int, default=None, help="Synthetic questions per chunk (default 3)"
    )
    p_idx.add_argument("--no-doc2query", action="store_true", help="Index chunks only")

    p_s = sub.add_parser("search", help="Search the configured collection")
    p_s.add_argument("--q", dest="query", type=str, required=True, help="Query text")
    p_s.add_argument("--topK", "--top-k", dest="top_k", type=int, default=5)

    sub.add_parser("reset-cache", help="Forget the cached collection id for the configured collection")

    p_srv = sub.add_parser("serve", help="Run the HTTP API")
    p_srv.add_argument("--host", default="127.0.0.1")
    p_srv.add_argument("--port", type=int, default=8080)
    return parser


def cmd_index(args, cfg) -> int:
    if args.no_doc2query:
        cfg["doc2query"]["enabled"] = False
    if args.doc2query_count is not None:
        cfg["doc2query"]["count"] = max(0, args.doc2query_count)
    service = build_service(cfg)
    folder = Path(args.dir) if args.dir else Path.cwd() / "data" / "pdfs"
    try:
        report = service.index_folder(folder)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        return 2
    if not report.processed:
        print(f"No PDFs found in: {report.folder}")
        return 0
    print(
        f"Indexing finished. Files processed={report.processed}, succeeded={report.succeeded}, "
        f"failed={report.failed}, took={report.elapsed_ms} ms"
    )
    return 0 if report.failed == 0 else 1


def cmd_search(args, cfg) -> int:
    if not args.query.strip():
        print("search requires --q <query>", file=sys.stderr)
        return 2
    service = build_service(cfg)
    results = service.search(args.query, args.top_k)
    if not results:
        print("No results.")
        return 0
    for i, r in enumerate(results, start=1):
        fname = r.metadata.get("filename")
        page = r.metadata.get("page")
        line = f"#{i} score={r.score:.4f}"
        if fname is not None:
            line += f" file={fname}"
        if page is not None:
            line += f" page={page}"
        print(line)
        print(_truncate(r.text, 400))
        print()
    return 0


def cmd_reset_cache(args, cfg) -> int:
    resolver = make_resolver(cfg)
    resolver.forget(cfg["collection"])
    print(f"Forgot cached id for collection {cfg['collection']!r}")
    return 0


def cmd_serve(args, cfg) -> int:
    import uvicorn

    from .web import create_app

    uvicorn.run(create_app(build_service(cfg)), host=args.host, port=args.port, log_level="warning")
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose and args.quiet:
        print("Cannot use --verbose and --quiet together.", file=sys.stderr)
        return 2

    try:
        cfg = load_config(args.config)
    except (PdfSearchError, OSError, yaml.YAMLError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 2

    level = "DEBUG" if args.verbose else "WARNING" if args.quiet else cfg["logging"].get("level")
    setup_logging(level=level, json_logs=args.log_json or bool(cfg["logging"].get("json")))
    logger.debug("CLI args parsed: %s", vars(args))

    handlers = {
        "index": cmd_index,
        "search": cmd_search,
        "reset-cache": cmd_reset_cache,
        "serve": cmd_serve,
    }
    try:
        return handlers[args.cmd](args, cfg)
    except PdfSearchError as e:
        logger.error("%s failed: %s", args.cmd, e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
