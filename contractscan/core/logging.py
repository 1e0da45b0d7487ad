"""
ContractScan Logging Framework

Centralized logging configuration using loguru.
The gateway logs to stderr; an optional log directory adds file sinks.
"""

import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from loguru import logger


# Global exception handler to ensure all errors are logged
def _global_exception_handler(exc_type, exc_value, exc_tb):
    """Handle uncaught exceptions globally."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return

    error_msg = ''.join(traceback.format_exception(exc_type, exc_value, exc_tb))
    logger.error(f"Uncaught exception:\n{error_msg}")

sys.excepthook = _global_exception_handler


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


_LOGO = """╔══════════════════════════════════════════════════════════════════════╗
║                                                                      ║
║    ██████╗ ██████╗ ███╗   ██╗████████╗██████╗  █████╗  ██████╗████╗  ║
║   ██╔════╝██╔═══██╗████╗  ██║╚══██╔══╝██╔══██╗██╔══██╗██╔════╝╚██╔╝  ║
║   ██║     ██║   ██║██╔██╗ ██║   ██║   ██████╔╝███████║██║      ██║   ║
║   ██║     ██║   ██║██║╚██╗██║   ██║   ██╔══██╗██╔══██║██║      ██║   ║
║   ╚██████╗╚██████╔╝██║ ╚████║   ██║   ██║  ██║██║  ██║╚██████╗ ██║   ║
║    ╚═════╝ ╚═════╝ ╚═╝  ╚═══╝   ╚═╝   ╚═╝  ╚═╝╚═╝  ╚═╝ ╚═════╝ ╚═╝   ║
║""" + "ContractScan Gateway - Solidity Static Analysis over MCP".center(70) + """║
╚══════════════════════════════════════════════════════════════════════╝"""


def get_logo() -> str:
    """Get the ContractScan logo."""
    return _LOGO + "\n"


def _create_header(title: str, metadata: Dict[str, Any], min_width: int = 70) -> str:
    """Create a boxed metadata table"""
    present = {k: v for k, v in metadata.items() if v is not None}
    if not present:
        return ""

    max_key_len = max(len(str(k)) for k in present)

    content_lines = []
    for key, value in present.items():
        key_padded = f"{key}:".ljust(max_key_len + 2)
        content_lines.append(f"  {key_padded} {value}")

    width = max(max(len(line) for line in content_lines) + 2, min_width)

    lines = []
    lines.append("┌" + "─" * width + "┐")
    lines.append("│" + f" {title} ".center(width) + "│")
    lines.append("├" + "─" * width + "┤")
    for content in content_lines:
        lines.append("│" + content.ljust(width) + "│")
    lines.append("└" + "─" * width + "┘")

    return "\n".join(lines)


def get_gateway_banner(metadata: Dict[str, Any]) -> str:
    """
    Get the startup banner: logo plus a gateway metadata table.

    Args:
        metadata: Values to show (None values are skipped)

    Returns:
        Formatted banner string
    """
    return get_logo() + _create_header("GATEWAY CONFIGURATION", metadata) + "\n"


def setup_console_only(level: str = "INFO"):
    """
    Setup console-only logging (default server mode).

    Args:
        level: Log level
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=True,
    )


def setup_logging(
    log_dir: Path,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
) -> Path:
    """
    Setup console plus file logging.

    Creates: {log_dir}/contractscan_{timestamp}/ with gateway.log and error.log

    Args:
        log_dir: Base directory for logs
        console_level: Log level for console output
        file_level: Log level for file output

    Returns:
        Path to the run's log directory
    """
    setup_console_only(console_level)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(log_dir) / f"contractscan_{timestamp}"
    run_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        run_dir / "gateway.log",
        level=file_level,
        format=FILE_FORMAT,
        rotation="50 MB",
        retention="7 days",
        encoding="utf-8",
    )

    # Error log file - only errors and above
    logger.add(
        run_dir / "error.log",
        level="ERROR",
        format=FILE_FORMAT,
        rotation="10 MB",
        encoding="utf-8",
    )

    logger.info(f"Logging initialized: {run_dir}")

    return run_dir


__all__ = [
    "logger",
    "setup_logging",
    "setup_console_only",
    "get_logo",
    "get_gateway_banner",
]
