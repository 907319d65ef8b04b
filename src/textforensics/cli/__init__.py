"""
textforensics CLI - Command-line interface for the text forensics scanner.

Commands:
- textforensics analyze: Analyze a file (or stdin) and print the JSON response
- textforensics info: Show version, checks and configuration
- textforensics serve: Start the HTTP API server
- textforensics check: Report available capabilities
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

from textforensics.core.pipeline import KNOWN_CHECKS


def _get_env_port(default: int = 8000) -> int:
    """Get port from PORT environment variable with safe parsing."""
    port_str = os.environ.get("PORT")
    if port_str is None:
        return default
    try:
        return int(port_str)
    except ValueError:
        return default


def _read_input(source: str) -> str:
    """Read UTF-8 text from a path or ``-`` (stdin).

    Raises:
        InputError: The source cannot be opened or is not valid UTF-8.
    """
    from textforensics.utils.errors import InputError

    try:
        if source == "-":
            raw = sys.stdin.buffer.read()
        else:
            with open(source, "rb") as f:
                raw = f.read()
    except OSError as e:
        raise InputError(f"Cannot read {source}: {e.strerror or e}", source=source) from e

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InputError(
            f"{source} is not valid UTF-8 (byte offset {e.start})", source=source
        ) from e


def cmd_analyze(args: argparse.Namespace) -> int:
    """Analyze text and print the response envelope."""
    from textforensics.core.pipeline import AnalysisRequest, analyze
    from textforensics.observability.logger import configure_logging
    from textforensics.utils.config_loader import load_config_for_runtime
    from textforensics.utils.errors import ConfigurationError, InputError

    configure_logging(args.log_level)

    try:
        analyzer = load_config_for_runtime(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        text = _read_input(args.file)
    except InputError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    checks = args.check or analyzer.default_checks
    mask_urls = analyzer.mask_urls and not args.no_mask_urls
    request = AnalysisRequest.model_validate(
        {"text": text, "selected": checks, "settings": {"mask_urls": mask_urls}}
    )
    response = analyze(request, limits=analyzer.limits)

    print(
        json.dumps(
            response.to_wire(),
            ensure_ascii=False,
            indent=2 if args.pretty else None,
        )
    )
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Show version, checks and configuration."""
    from textforensics import __version__
    from textforensics.config.runtime import get_runtime_config

    config = get_runtime_config()

    print("=" * 60)
    print("textforensics - hidden-signal scanner for text")
    print("=" * 60)
    print()
    print(f"Version:     {__version__}")
    print(
        f"Python:      {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    )
    print(f"Mode:        {config.mode.value}")
    print(f"Config:      {config.analyzer.config_path}")
    print()

    print("Checks:")
    print("  unicode_specials    - Invisible, bidi, tag and format codepoints")
    print("  unicode_bidi        - Bidi control pairing (Trojan Source)")
    print("  unicode_homoglyph   - Script-confusable identifiers")
    print("  unicode_norm        - NFKC normalization drift")
    print("  payload_base64      - Verified base64/base64url payloads")
    print()

    print("HTTP Endpoints:")
    print("  /api/analyze         - Run checks (POST JSON)")
    print("  /health/liveness     - Liveness probe")
    print("  /health/readiness    - Readiness probe")
    print("  /health/metrics      - Prometheus metrics")
    print()

    print("=" * 60)
    print("Run 'textforensics analyze FILE' to scan a file")
    print("Run 'textforensics serve' to start the HTTP API server")
    print("=" * 60)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the HTTP API server.

    Environment variables HOST and PORT are the defaults for --host and
    --port.
    """
    from textforensics.config.runtime import apply_runtime_config, get_runtime_config
    from textforensics.entrypoints.serve import serve
    from textforensics.observability.logger import configure_logging

    if args.config:
        os.environ["TEXTFORENSICS_CONFIG_PATH"] = args.config

    config = get_runtime_config()
    configure_logging(config.observability.log_level, config.observability.json_logging)

    config.server.host = args.host
    config.server.port = args.port
    config.server.log_level = args.log_level
    config.server.reload = args.reload
    if args.workers is not None:
        config.server.workers = args.workers
    # Factory-built apps in worker processes read their settings from here
    apply_runtime_config(config)

    print("=" * 60)
    print("textforensics HTTP API Server")
    print("=" * 60)
    print(f"Starting server on {args.host}:{args.port}")
    print(f"Mode: {config.mode.value}")
    print(f"Config: {config.analyzer.config_path}")

    if args.host == "0.0.0.0":
        print()
        print("SECURITY NOTICE: Binding to 0.0.0.0 exposes the server to all")
        print("network interfaces. For local development, consider using 127.0.0.1.")

    print()

    return serve(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        reload=args.reload,
        workers=args.workers,
    )


def cmd_check(args: argparse.Namespace) -> int:
    """Report capabilities and configuration validity."""
    from textforensics.api.health import health_summary
    from textforensics.config.runtime import get_runtime_config, print_runtime_config
    from textforensics.core.capabilities import detect_capabilities
    from textforensics.utils.config_loader import load_config_for_runtime
    from textforensics.utils.errors import ConfigurationError

    status: dict[str, Any] = {
        "python_version": sys.version.split()[0],
        **health_summary(detect_capabilities()),
    }

    exit_code = 0
    try:
        analyzer = load_config_for_runtime(args.config)
        status["config"] = {"valid": True, "limits": analyzer.limits.model_dump()}
    except ConfigurationError as e:
        status["config"] = {"valid": False, "error": str(e), **e.error_details.to_dict()}
        exit_code = 1

    if args.json:
        print(json.dumps(status, indent=2))
        return exit_code

    print("=" * 60)
    print("textforensics Environment Check")
    print("=" * 60)
    print()
    print(f"Python: {status['python_version']}")
    for name, value in status["capabilities"].items():
        print(f"  {name:<30} {value}")
    print()
    print(f"Configuration valid: {status['config']['valid']}")
    if not status["config"]["valid"]:
        print(f"  {status['config']['error']}")
    elif args.verbose:
        for name, value in status["config"]["limits"].items():
            print(f"  {name:<30} {value}")
    if args.verbose:
        print()
        print_runtime_config(get_runtime_config())
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    from textforensics import __version__

    parser = argparse.ArgumentParser(
        prog="textforensics",
        description="textforensics - hidden-signal scanner for text",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze a file or stdin")
    analyze_parser.add_argument(
        "file",
        nargs="?",
        default="-",
        help="UTF-8 text file to analyze, or '-' for stdin (default: stdin)",
    )
    analyze_parser.add_argument(
        "-c",
        "--check",
        action="append",
        choices=sorted(KNOWN_CHECKS),
        help="Check to run; repeatable (default: default_checks from the config file)",
    )
    analyze_parser.add_argument(
        "--no-mask-urls",
        action="store_true",
        help="Scan URLs for payloads instead of blanking them",
    )
    analyze_parser.add_argument("--pretty", action="store_true", help="Indent the JSON output")
    analyze_parser.add_argument("--config", type=str, help="Path to configuration file")
    analyze_parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for stderr diagnostics (default: WARNING)",
    )

    # Info command
    subparsers.add_parser("info", help="Show version, checks and configuration")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start HTTP API server")
    serve_parser.add_argument(
        "--host",
        type=str,
        default=os.environ.get("HOST", "0.0.0.0"),
        help="Host to bind to (default: 0.0.0.0, or HOST env var)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=_get_env_port(8000),
        help="Port to bind to (default: 8000, or PORT env var)",
    )
    serve_parser.add_argument("--config", type=str, help="Path to configuration file")
    serve_parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    serve_parser.add_argument("--workers", type=int, default=None, help="Worker processes")

    # Check command
    check_parser = subparsers.add_parser("check", help="Report capabilities")
    check_parser.add_argument("--config", type=str, help="Path to configuration file")
    check_parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    check_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    args = parser.parse_args(argv)

    if args.command == "analyze":
        return cmd_analyze(args)
    elif args.command == "info":
        return cmd_info(args)
    elif args.command == "serve":
        return cmd_serve(args)
    elif args.command == "check":
        return cmd_check(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
