"""TSV export tools for the Clearinghouse bulk query upload.

Converts driver records into the fixed tab-separated layout the bulk upload
form expects and persists the result under ``DATA_DIR``. Values are written
exactly as received: no validation, escaping, or coercion. An embedded tab or
newline therefore corrupts its row; callers own that.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from config.settings import server_config

logger = logging.getLogger(__name__)

__all__ = ["TSV_COLUMNS", "TSV_DELIMITER", "drivers_to_tsv", "write_upload_file"]

# Column order is fixed by the upload form.
TSV_COLUMNS: tuple[str, ...] = (
    "LastName",
    "FirstName",
    "DOB",
    "CDL",
    "Country",
    "State",
    "QueryType",
)
TSV_DELIMITER: str = "\t"


def drivers_to_tsv(drivers: Sequence[Mapping[str, Any]]) -> str:
    """Serialize driver records to the bulk upload TSV layout.

    Args:
        drivers: Records keyed by the ``TSV_COLUMNS`` names, in output order.

    Returns:
        Header row followed by one row per record, joined with ``\\n``
        (no trailing newline).
    """
    header: str = TSV_DELIMITER.join(TSV_COLUMNS)
    rows: list[str] = [
        TSV_DELIMITER.join(f"{driver.get(column)}" for column in TSV_COLUMNS)
        for driver in drivers
    ]
    return "\n".join([header, *rows])


def write_upload_file(
    drivers: Sequence[Mapping[str, Any]],
    data_dir: Optional[str | Path] = None,
) -> Path:
    """Write driver records to a new timestamped TSV file.

    The file is named ``upload_<epoch-millis>.tsv`` and the directory is
    created if missing. Files are opened exclusively; when two writes land
    in the same millisecond the later one takes the next free millisecond,
    so an existing upload is never overwritten.

    Args:
        drivers: Records to serialize via :func:`drivers_to_tsv`.
        data_dir: Target directory. Defaults to ``server_config.data_dir``.

    Returns:
        Absolute path of the written file.
    """
    target_dir: Path = Path(data_dir or server_config.data_dir).resolve()
    os.makedirs(target_dir, exist_ok=True)

    content: str = drivers_to_tsv(drivers)
    stamp: int = int(time.time() * 1000)
    while True:
        file_path: Path = target_dir / f"upload_{stamp}.tsv"
        try:
            with open(file_path, "x", encoding="utf-8") as fh:
                fh.write(content)
            break
        except FileExistsError:
            stamp += 1

    logger.info("Saved TSV to %s (%d drivers)", file_path, len(drivers))
    return file_path
