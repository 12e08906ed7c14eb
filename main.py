"""Clearinghouse bulk upload agent: command-line entry point.

Runs the portal automation once, without the HTTP server, against an
existing TSV file. Useful for local debugging with ``HEADLESS=false`` and
``RECORD_VIDEO=true``.

Usage:
    python main.py                                  # bundled sample, COMPANY_UUID
    python main.py --file data/upload.tsv --company-uuid <uuid>

The HTTP server is started separately with ``python -m api.api_server``.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# MODULE-LEVEL SETUP  (runs at import time)
# ---------------------------------------------------------------------------

# override=False so values already in the process environment win.
load_dotenv(override=False)

# CLI runs log separately from the API server (logs/server.log).
LOG_FILE: str = "logs/automation.log"

# Ensure logs/ directory exists before any FileHandler is created.
os.makedirs("logs", exist_ok=True)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(LOG_FILE, mode="a", encoding="utf-8"),
    ],
)

logger: logging.Logger = logging.getLogger("main")

# Deferred imports: env must be loaded first.
from tools.upload_tools import run_bulk_upload  # noqa: E402

__all__ = ["main"]


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and return CLI arguments for the automation entry point."""
    parser = argparse.ArgumentParser(
        description="FMCSA Clearinghouse bulk query upload automation"
    )
    parser.add_argument(
        "--file",
        type=str,
        default=None,
        help="TSV file to upload (default: bundled tools/samples/sample.tsv)",
    )
    parser.add_argument(
        "--company-uuid",
        type=str,
        default=None,
        help="Employer identifier to select (default: COMPANY_UUID env var)",
    )
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# MAIN
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Run one bulk upload and return a POSIX exit code.

    Returns:
        ``0`` on success, ``1`` on any failure, ``130`` on
        :exc:`KeyboardInterrupt`.
    """
    args: argparse.Namespace = parse_args(argv)
    logger.info("Starting FMCSA Clearinghouse Automation...")

    try:
        result = asyncio.run(run_bulk_upload(args.file, args.company_uuid))
    except KeyboardInterrupt:
        logger.warning("Automation interrupted by user")
        return 130
    except Exception as exc:
        logger.critical("Automation failed: %s", exc)
        return 1

    logger.info(
        "Upload complete | company=%s | file=%s | url=%s",
        result.company_uuid,
        result.file_path,
        result.final_url,
    )
    return 0


# ---------------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
