"""
Entry point for running the ContractScan gateway.

Usage:
    python -m contractscan [OPTIONS]

Options:
    --host TEXT         Host to bind to (default: $HOST or 0.0.0.0)
    --port INT          Port to bind to (default: $PORT or 9005)
    --engine NAME       Analysis engine: slither | aderyn (default: slither)
    --timeout SECONDS   Per-analysis time limit (default: engine default)
    --no-skills         Do not expose or preload the skills catalog
    --json-response     Reply to MCP requests with JSON instead of SSE
    --log-level LEVEL   Console log level (default: INFO)
    --log-dir PATH      Also write logs under this directory
"""

import argparse
import sys
from pathlib import Path

from .core.config import Config, set_config
from .core.logging import get_gateway_banner, logger, setup_console_only, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contractscan",
        description="ContractScan Gateway - Solidity static analysis over MCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: $HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (default: $PORT or 9005)",
    )
    parser.add_argument(
        "--engine",
        default="slither",
        help="Analysis engine: slither | aderyn (default: slither)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-analysis time limit in seconds (default: engine default)",
    )
    parser.add_argument(
        "--no-skills",
        action="store_true",
        help="Do not expose or preload the skills catalog",
    )
    parser.add_argument(
        "--json-response",
        action="store_true",
        help="Reply to MCP requests with JSON instead of SSE streams",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Console log level (default: INFO)",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Also write logs under this directory",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """Environment config overridden by CLI flags."""
    config = Config.from_env()
    if args.host:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    config.engine = args.engine
    config.timeout_seconds = args.timeout
    config.enable_skills = not args.no_skills
    config.json_response = args.json_response
    config.log_level = args.log_level.upper()
    config.log_dir = args.log_dir
    return config


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"Error: invalid environment configuration: {e}", file=sys.stderr)
        sys.exit(1)

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)

    set_config(config)

    if config.log_dir:
        log_dir = setup_logging(Path(config.log_dir), console_level=config.log_level)
        logger.info(f"Logs: {log_dir}")
    else:
        setup_console_only(config.log_level)

    logger.info("\n" + get_gateway_banner({
        "Engine": config.engine,
        "Host": config.host,
        "Port": config.port,
        "Timeout": config.timeout_seconds or "engine default",
        "Skills": "enabled" if config.enable_skills else "disabled",
        "MCP": f"http://{config.host}:{config.port}/mcp",
        "Docs": f"http://{config.host}:{config.port}/docs",
    }))

    import uvicorn

    from .server import create_app

    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower() if config.log_level != "SUCCESS" else "info",
    )


if __name__ == "__main__":
    main()
