# api/tests/test_api_server.py
# HTTP intake endpoint tests

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from api.api_server import app
from config.settings import ServerConfig
from tools import tsv_tools, upload_tools

DRIVERS = [
    {
        "LastName": "Doe",
        "FirstName": "Jane",
        "DOB": "01/15/1980",
        "CDL": "D1234567",
        "Country": "USA",
        "State": "CA",
        "QueryType": "Limited",
    },
    {
        "LastName": "Roe",
        "FirstName": "Richard",
        "DOB": "07/04/1975",
        "CDL": "R7654321",
        "Country": "USA",
        "State": "TX",
        "QueryType": "Pre-Employment",
    },
]


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    target = tmp_path / "data"
    monkeypatch.setattr(tsv_tools, "server_config", ServerConfig(data_dir=str(target)))
    return target


@pytest.fixture
def automation():
    with patch("api.api_server.run_bulk_upload", new_callable=AsyncMock) as mocked:
        yield mocked


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_upload_success_returns_file_path(client, data_dir, automation):
    resp = client.post("/upload-drivers/acme-uuid", json=DRIVERS)

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Automation completed successfully"

    file_path = Path(body["file"])
    assert file_path.parent == data_dir.resolve()
    assert file_path.read_text(encoding="utf-8").split("\n") == [
        "LastName\tFirstName\tDOB\tCDL\tCountry\tState\tQueryType",
        "Doe\tJane\t01/15/1980\tD1234567\tUSA\tCA\tLimited",
        "Roe\tRichard\t07/04/1975\tR7654321\tUSA\tTX\tPre-Employment",
    ]
    automation.assert_awaited_once_with(file_path, "acme-uuid")


def test_empty_array_is_rejected_without_side_effects(client, data_dir, automation):
    resp = client.post("/upload-drivers/acme-uuid", json=[])

    assert resp.status_code == 400
    assert "non-empty array" in resp.json()["error"]
    assert not data_dir.exists()
    automation.assert_not_awaited()


@pytest.mark.parametrize(
    "payload",
    [
        {"drivers": DRIVERS},
        [{"LastName": "Doe", "FirstName": "Jane"}],
        ["not-a-record"],
    ],
)
def test_malformed_body_is_rejected(client, data_dir, automation, payload):
    resp = client.post("/upload-drivers/acme-uuid", json=payload)

    assert resp.status_code == 400
    assert "error" in resp.json()
    assert not data_dir.exists()
    automation.assert_not_awaited()


def test_automation_failure_returns_500_with_message(client, data_dir, automation):
    automation.side_effect = RuntimeError("Timeout 10000ms exceeded waiting for #EmployerId")

    resp = client.post("/upload-drivers/acme-uuid", json=DRIVERS)

    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Automation failed",
        "details": "Timeout 10000ms exceeded waiting for #EmployerId",
    }


def test_portal_failure_still_closes_browser_session(
    client, data_dir, fake_session, browser_settings, monkeypatch
):
    # No employer select on the page: the required-element wait fails.
    monkeypatch.setattr(upload_tools, "browser_config", browser_settings)

    with patch("tools.upload_tools.async_playwright", fake_session):
        resp = client.post("/upload-drivers/acme-uuid", json=DRIVERS)

    assert resp.status_code == 500
    assert "#EmployerId" in resp.json()["details"]
    fake_session.context.close.assert_awaited_once()
    fake_session.browser.close.assert_awaited_once()
    assert fake_session.page.screenshots[0]["path"] == browser_settings.screenshot_path
