"""
FastAPI server for the Clearinghouse bulk upload agent.

Thin HTTP boundary in front of the portal automation. Accepts a JSON array of
driver records for an employer, writes them to a TSV under ``DATA_DIR`` and
awaits ``run_bulk_upload`` before responding. One browser session per
request; concurrent requests are not coordinated.

Runs as the Docker CMD on API_PORT (3100).
"""

import os
import sys
import logging
from contextlib import asynccontextmanager
from typing import List

from dotenv import load_dotenv

# override=False so values already in the process environment win.
load_dotenv(override=False)

os.makedirs("logs", exist_ok=True)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler("logs/server.log", mode="a", encoding="utf-8"),
    ],
)

from fastapi import Body, FastAPI, Request  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from pydantic import BaseModel, ConfigDict, Field  # noqa: E402
import uvicorn  # noqa: E402

# Deferred imports: env must be loaded first.
from config.settings import browser_config, portal_config, server_config  # noqa: E402
from tools.tsv_tools import write_upload_file  # noqa: E402
from tools.upload_tools import run_bulk_upload  # noqa: E402

logger = logging.getLogger(__name__)

__all__ = ["app", "main", "DriverRecord"]

INVALID_INPUT_MESSAGE: str = "Invalid input. Expected a non-empty array of drivers."


# ---------------------------------------------------------------------------
# Pydantic Models
# ---------------------------------------------------------------------------


class DriverRecord(BaseModel):
    """One row of the bulk query upload.

    JSON keys match the TSV column names. Values are opaque strings and are
    passed through to the file untouched.
    """

    model_config = ConfigDict(populate_by_name=True)

    last_name: str = Field(..., alias="LastName")
    first_name: str = Field(..., alias="FirstName")
    dob: str = Field(..., alias="DOB")
    cdl: str = Field(..., alias="CDL")
    country: str = Field(..., alias="Country")
    state: str = Field(..., alias="State")
    query_type: str = Field(..., alias="QueryType")

    def to_row(self) -> dict[str, str]:
        """Return the record keyed by TSV column name."""
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[type-arg]
    """Log the effective configuration on startup and the shutdown event."""
    logger.info(
        "Server is running on http://%s:%d | headless=%s | record_video=%s",
        server_config.host,
        server_config.port,
        browser_config.headless,
        browser_config.record_video,
    )
    if not portal_config.email or not portal_config.password:
        logger.warning("FMCSA_EMAIL / FMCSA_PASSWORD not set; logins will fail")
    if not portal_config.company_uuid:
        logger.info("COMPANY_UUID not set; every request must name an employer")

    yield

    logger.info("FastAPI server shutting down")


# ---------------------------------------------------------------------------
# App Setup
# ---------------------------------------------------------------------------


app = FastAPI(
    title="Clearinghouse Bulk Upload API",
    description="Converts driver records to TSV and uploads them to the FMCSA Clearinghouse",
    version="1.0.0",
    docs_url="/docs",
    redoc_url=None,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400 instead of FastAPI's 422."""
    logger.warning("Rejected malformed body | path=%s", request.url.path)
    return JSONResponse(status_code=400, content={"error": INVALID_INPUT_MESSAGE})


# ---------------------------------------------------------------------------
# Endpoint 1: GET /health
# ---------------------------------------------------------------------------


@app.get("/health", tags=["health"])
async def health_check() -> JSONResponse:
    """Liveness probe. No side effects."""
    return JSONResponse(content={"status": "ok"})


# ---------------------------------------------------------------------------
# Endpoint 2: POST /upload-drivers/{company_uuid}
# ---------------------------------------------------------------------------


@app.post("/upload-drivers/{company_uuid}", tags=["upload"])
async def upload_drivers(
    company_uuid: str,
    drivers: List[DriverRecord] = Body(...),
) -> JSONResponse:
    """Convert a driver list to TSV and run the Clearinghouse bulk upload.

    The automation is awaited, so the response reflects the finished run.
    The generated file is kept on disk for debugging.

    Args:
        company_uuid: Employer identifier selected on the upload form.
        drivers: Driver records, in the order rows should appear.

    Returns:
        JSONResponse: 200 with the file path, 400 for an empty list, 500
            with the failure message if the automation raised.
    """
    if not drivers:
        return JSONResponse(status_code=400, content={"error": INVALID_INPUT_MESSAGE})

    logger.info(
        "Received request to upload %d drivers | company=%s",
        len(drivers),
        company_uuid,
    )

    try:
        file_path = write_upload_file([driver.to_row() for driver in drivers])
        await run_bulk_upload(file_path, company_uuid)
    except Exception as exc:  # noqa: BLE001
        logger.error("Error in /upload-drivers: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Automation failed", "details": str(exc)},
        )

    return JSONResponse(
        content={
            "message": "Automation completed successfully",
            "file": str(file_path),
        }
    )


# ---------------------------------------------------------------------------
# Main Runner
# ---------------------------------------------------------------------------


def main() -> None:
    """Start the uvicorn ASGI server for the FastAPI application.

    Reads host and port from ``server_config``. Single-worker, no hot-reload:
    each request drives its own browser and nothing is shared between them.
    """
    uvicorn.run(
        "api.api_server:app",
        host=server_config.host,
        port=server_config.port,
        log_level=server_config.log_level.lower(),
        reload=False,
        workers=1,
    )


if __name__ == "__main__":
    main()
