"""blobfs CLI.

Usage:
    python -m blobfs serve [--host HOST] [--port PORT]
    python -m blobfs resolve PATH [PATH ...]

Configuration comes from BLOBFS_* environment variables (see blobfs.config).

Exit codes:
    0: Success
    1: Internal error
    2: Configuration error
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from blobfs.config import ConfigError, ServiceConfig, load_service_config
from blobfs.observability.logging import configure_logging
from blobfs.vfs.path_mapper import PathMapper


def _output_json(data: Any) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _make_error(code: str, message: str) -> dict[str, str]:
    return {"code": code, "message": message}


def cmd_resolve(args: argparse.Namespace, config: ServiceConfig) -> int:
    """Print how each path maps onto storage.

    Never contacts the object store.
    """
    mapper = PathMapper(
        config.root_dir,
        config.pseudo_directories,
        path_style=config.path_style,
    )
    results = [
        {
            "path": path,
            "key": mapper.convert(path),
            "is_root": mapper.is_root(path),
            "is_dir": mapper.is_dir(path),
        }
        for path in args.paths
    ]
    _output_json({"root_dir": mapper.root_dir, "results": results})
    return 0


def cmd_serve(args: argparse.Namespace, config: ServiceConfig) -> int:
    """Run the API server with uvicorn."""
    import uvicorn

    from blobfs.api.main import create_app
    from blobfs.context import build_context

    configure_logging(config.log_level)
    app = create_app(build_context(config))

    uvicorn.run(
        app,
        host=args.host or config.host,
        port=args.port or config.port,
        log_level=config.log_level.lower(),
        log_config=None,
    )
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="blobfs",
        description="blobfs - filesystem interface over flat object storage",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve_parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: BLOBFS_SERVER_HOST or 127.0.0.1)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: BLOBFS_SERVER_PORT or 8000)",
    )

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Show the storage key and directory predicates for paths",
    )
    resolve_parser.add_argument("paths", nargs="+", metavar="PATH", help="Client paths")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_service_config()
    except ConfigError as e:
        _output_json(_make_error("CONFIG_ERROR", str(e)))
        return 2

    try:
        if args.command == "resolve":
            return cmd_resolve(args, config)
        if args.command == "serve":
            return cmd_serve(args, config)
    except Exception as e:
        _output_json(_make_error("INTERNAL_ERROR", str(e)))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
