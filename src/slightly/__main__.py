from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from wsgiref.simple_server import make_server

from slightly.app.processor import TemplateProcessor
from slightly.app.request import Request
from slightly.core.config import ProcessorConfig
from slightly.core.error import DocumentNotFoundError
from slightly.core.log import setup_logging
from slightly.engine.pipeline import ExpansionPipeline, ExpansionResult


def _render(args: argparse.Namespace) -> int:
    source = Path(args.file)
    if not source.is_file():
        print(ExpansionResult.failed(DocumentNotFoundError(args.file)).output)
        return 1

    config = ProcessorConfig.from_env(charset=args.charset) if args.charset else ProcessorConfig.from_env()
    request = Request({
        "REQUEST_METHOD": "GET",
        "PATH_INFO": "/" + source.name,
        "QUERY_STRING": args.query,
    })
    result = ExpansionPipeline(config).expand(source.read_bytes(), request=request)
    print(result.output)
    return 0 if result.ok else 1


def _serve(args: argparse.Namespace) -> int:
    config = ProcessorConfig.from_env(document_root=args.root)
    app = TemplateProcessor(config)
    with make_server(args.address, args.port, app) as httpd:
        print(f"Serving {Path(args.root).resolve()} on http://{args.address}:{args.port}/")
        httpd.serve_forever()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="slightly",
        description="Slightly server-side template CLI",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    parser.add_argument("--log-file", default=None, help="Write logs to this file instead of stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # test
    subparsers.add_parser("test", help="Test Slightly installation")

    # render
    p = subparsers.add_parser("render", help="Expand one template file and print the result")
    p.add_argument("file", help="Template file")
    p.add_argument("--query", default="", help="Query string bound into request (e.g. 'id=3&x=y')")
    p.add_argument("--charset", default=None, help="Template charset (default: utf-8)")

    # serve
    p = subparsers.add_parser("serve", help="Serve a template directory (development server)")
    p.add_argument("--root", default=".", help="Document root (default: current directory)")
    p.add_argument("--address", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    p.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, log_path=args.log_file)

    if args.command == "test":
        print("Hello Slightly!")
        return 0

    if args.command == "render":
        return _render(args)

    if args.command == "serve":
        return _serve(args)

    return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
