# File: tests/api_integration/test_ogd_client.py
"""
Unit tests for the data.gov.in client (`src/api_integration/ogd_client.py`).

`requests.get` is mocked throughout to simulate successful pages, HTTP
errors, network failures, and malformed payloads.
"""

import pytest
import requests
import sys
import os
import json
from unittest.mock import MagicMock

# --- Setup Project Root Path ---
TEST_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(TEST_DIR, '..', '..'))
if PROJECT_ROOT not in sys.path:
     sys.path.insert(0, PROJECT_ROOT)

# --- Import Functions and Exceptions to be Tested ---
from src.api_integration.ogd_client import (
    get_api_key,
    get_ogd_payload,
    get_station_records,
)
from src.exceptions import (
    APIError, APIKeyError, APINotFoundError, APITimeoutError,
    UpstreamUnavailableError,
)

TEST_KEY = "test-key-123"
RESOURCE_ID = "579b464db66ec23bdd000001692be7fdbc4c4e5e5142b59bd3f812f1"

# --- Mock Data Samples (Simulated API Responses) ---
MOCK_SUCCESS_PAYLOAD = {
    "status": "ok",
    "total": 3,
    "records": [
        {"station": "Maninagar, Ahmedabad - GPCB", "latitude": "22.996", "longitude": "72.603",
         "pollutant_id": "PM2.5", "pollutant_avg": "61"},
        "garbage row",
        {"station": "SVPI Airport Hansol, Ahmedabad - IITM", "latitude": "23.077", "longitude": "72.634",
         "pollutant_id": "PM10", "pollutant_avg": "96"},
    ],
}
MOCK_ERROR_PAYLOAD = {"status": "error", "message": "Invalid API key"}


@pytest.fixture(autouse=True)
def clear_provider_env(monkeypatch):
    monkeypatch.delenv('OGD_API_KEY', raising=False)
    monkeypatch.delenv('AQI_API_KEY', raising=False)
    monkeypatch.delenv('OGD_RESOURCE_ID', raising=False)


def mock_requests_get(mocker, status_code=200, json_data=None, raise_for_status_effect=None, side_effect=None):
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    if json_data is not None:
        mock_resp.json.return_value = json_data
    if raise_for_status_effect:
        mock_resp.raise_for_status.side_effect = raise_for_status_effect
    else:
        mock_resp.raise_for_status.return_value = None

    if side_effect:
        return mocker.patch('requests.get', side_effect=side_effect)
    return mocker.patch('requests.get', return_value=mock_resp)


def _http_error(status_code, reason):
    return requests.exceptions.HTTPError(response=MagicMock(status_code=status_code, reason=reason, text=reason))


# --- API key lookup ---

def test_get_api_key_prefers_ogd_name(monkeypatch):
    monkeypatch.setenv('AQI_API_KEY', 'legacy')
    assert get_api_key() == 'legacy'
    monkeypatch.setenv('OGD_API_KEY', 'primary')
    assert get_api_key() == 'primary'


def test_get_api_key_blank_is_unconfigured(monkeypatch):
    monkeypatch.setenv('OGD_API_KEY', '')
    assert get_api_key() is None


# --- get_ogd_payload ---

def test_get_ogd_payload_success(mocker):
    """A good page is returned as-is and the request carries key, format and limit."""
    mock_get = mock_requests_get(mocker, json_data=MOCK_SUCCESS_PAYLOAD)
    result = get_ogd_payload(limit=50, api_key=TEST_KEY, resource_id=RESOURCE_ID, timeout=3)
    assert result == MOCK_SUCCESS_PAYLOAD

    args, kwargs = mock_get.call_args
    assert args[0].endswith(f"/resource/{RESOURCE_ID}")
    assert kwargs['params'] == {'api-key': TEST_KEY, 'format': 'json', 'limit': 50}
    assert kwargs['timeout'] == 3


def test_get_ogd_payload_uses_configured_defaults(mocker, monkeypatch):
    monkeypatch.setenv('OGD_API_KEY', TEST_KEY)
    mock_get = mock_requests_get(mocker, json_data=MOCK_SUCCESS_PAYLOAD)
    get_ogd_payload()
    args, kwargs = mock_get.call_args
    assert args[0].endswith(RESOURCE_ID)
    assert kwargs['params']['limit'] == 1000
    assert kwargs['timeout'] == 8


def test_resource_id_env_override(mocker, monkeypatch):
    monkeypatch.setenv('OGD_RESOURCE_ID', 'custom-resource')
    mock_get = mock_requests_get(mocker, json_data=MOCK_SUCCESS_PAYLOAD)
    get_ogd_payload(api_key=TEST_KEY)
    assert mock_get.call_args[0][0].endswith('/custom-resource')


def test_get_ogd_payload_missing_key(mocker):
    mock_get = mock_requests_get(mocker, json_data=MOCK_SUCCESS_PAYLOAD)
    with pytest.raises(APIKeyError) as excinfo:
        get_ogd_payload()
    assert excinfo.value.status_code is None
    mock_get.assert_not_called()


def test_get_ogd_payload_timeout(mocker):
    mock_requests_get(mocker, side_effect=requests.exceptions.Timeout("Simulated Request timed out"))
    with pytest.raises(APITimeoutError) as excinfo:
        get_ogd_payload(api_key=TEST_KEY, timeout=8)
    assert "timed out after 8s" in str(excinfo.value)
    assert excinfo.value.service == "OGD"
    assert isinstance(excinfo.value, UpstreamUnavailableError)


@pytest.mark.parametrize("status_code, reason", [(401, "Unauthorized"), (403, "Forbidden")])
def test_get_ogd_payload_auth_errors(mocker, status_code, reason):
    mock_requests_get(mocker, status_code=status_code, raise_for_status_effect=_http_error(status_code, reason))
    with pytest.raises(APIKeyError) as excinfo:
        get_ogd_payload(api_key=TEST_KEY)
    assert excinfo.value.status_code == status_code
    assert excinfo.value.args[0] == (
        f"OGD API Error: OGD authorization failed ({status_code}). Check OGD_API_KEY. (Status: {status_code})"
    )


def test_get_ogd_payload_not_found(mocker):
    mock_requests_get(mocker, status_code=404, raise_for_status_effect=_http_error(404, "Not Found"))
    with pytest.raises(APINotFoundError) as excinfo:
        get_ogd_payload(api_key=TEST_KEY, resource_id="missing")
    assert "'missing' not found" in str(excinfo.value)
    assert excinfo.value.status_code == 404


def test_get_ogd_payload_server_error(mocker):
    mock_requests_get(mocker, status_code=500, raise_for_status_effect=_http_error(500, "Internal Server Error"))
    with pytest.raises(UpstreamUnavailableError) as excinfo:
        get_ogd_payload(api_key=TEST_KEY)
    assert excinfo.value.status_code == 500


def test_get_ogd_payload_network_error(mocker):
    mock_requests_get(mocker, side_effect=requests.exceptions.ConnectionError("Simulated Failed to connect"))
    with pytest.raises(UpstreamUnavailableError) as excinfo:
        get_ogd_payload(api_key=TEST_KEY)
    assert "Simulated Failed to connect" in str(excinfo.value)


def test_get_ogd_payload_invalid_json(mocker):
    mock_resp = MagicMock(status_code=200)
    mock_resp.json.side_effect = json.JSONDecodeError("Simulated Decoding JSON has failed", "<html>", 0)
    mock_resp.raise_for_status.return_value = None
    mocker.patch('requests.get', return_value=mock_resp)
    with pytest.raises(UpstreamUnavailableError) as excinfo:
        get_ogd_payload(api_key=TEST_KEY)
    assert "OGD JSON decoding error" in str(excinfo.value)


def test_get_ogd_payload_error_status(mocker):
    mock_requests_get(mocker, json_data=MOCK_ERROR_PAYLOAD)
    with pytest.raises(APIError) as excinfo:
        get_ogd_payload(api_key=TEST_KEY)
    assert "Invalid API key" in str(excinfo.value)


def test_get_ogd_payload_non_object_body(mocker):
    mock_requests_get(mocker, json_data=["not", "a", "dict"])
    with pytest.raises(UpstreamUnavailableError):
        get_ogd_payload(api_key=TEST_KEY)


# --- get_station_records ---

def test_get_station_records_filters_non_mapping_rows(mocker):
    mock_requests_get(mocker, json_data=MOCK_SUCCESS_PAYLOAD)
    records = get_station_records(api_key=TEST_KEY)
    assert len(records) == 2
    assert all(isinstance(r, dict) for r in records)


@pytest.mark.parametrize("payload", [{"status": "ok"}, {"status": "ok", "records": None}, {"records": []}])
def test_get_station_records_empty_payloads(mocker, payload):
    mock_requests_get(mocker, json_data=payload)
    assert get_station_records(api_key=TEST_KEY) == []
