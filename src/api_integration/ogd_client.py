# File: src/api_integration/ogd_client.py

"""
Handles interactions with the Open Government Data (data.gov.in) real-time AQI resource.

Provides functions to fetch the raw station record batch used for nearest-station
lookups. Requires an OGD_API_KEY environment variable (legacy name AQI_API_KEY is
also accepted), loaded from .env. The resource id and base URL are configurable via
config/config.yaml; OGD_RESOURCE_ID in the environment overrides the resource id.
"""

import requests
import os
import logging
from dotenv import load_dotenv

from src.config_loader import PROJECT_ROOT, get_setting
from src.exceptions import (
    APIKeyError, APINotFoundError, APITimeoutError,
    ConfigError, UpstreamUnavailableError,
)

log = logging.getLogger(__name__)

SERVICE_NAME = "OGD"
PROVIDER_NAME = "data.gov.in"

# --- Load API Key ---
dotenv_path = os.path.join(PROJECT_ROOT, '.env')
if os.path.exists(dotenv_path):
    if load_dotenv(dotenv_path=dotenv_path):
        log.info(f"OGD Client: Loaded .env file from: {dotenv_path}")
else:
    log.info(f"OGD Client: .env file not found at: {dotenv_path}. Provider keys must be set in environment.")


def get_api_key():
    """The configured provider key, or None when the provider is unconfigured."""
    return os.getenv('OGD_API_KEY') or os.getenv('AQI_API_KEY') or None


def get_resource_id():
    return os.getenv('OGD_RESOURCE_ID') or get_setting('apis', 'ogd', 'resource_id')


# --- Core API Data Fetching Function ---
def get_ogd_payload(limit=None, api_key=None, resource_id=None, timeout=None):
    """Fetches one page of the OGD resource and returns the decoded JSON body.

    Args:
        limit (int | None): Maximum records to request (config default 1000).
        api_key (str | None): Overrides the environment key.
        resource_id (str | None): Overrides the configured resource id.
        timeout (float | None): Request timeout in seconds (config default 8).

    Raises:
        APIKeyError: If no key is available or the provider rejects it.
        ConfigError: If the base URL or resource id is missing.
        APITimeoutError: If the request times out.
        APINotFoundError: If the resource does not exist (HTTP 404).
        UpstreamUnavailableError: For other HTTP, network, or decoding failures.

    Returns:
        dict: The JSON body, typically with 'records' and 'total' keys.
    """
    api_key = api_key or get_api_key()
    resource_id = resource_id or get_resource_id()
    base_url = get_setting('apis', 'ogd', 'base_url', default="https://api.data.gov.in/resource")
    limit = limit or get_setting('apis', 'ogd', 'record_limit', default=1000)
    timeout = timeout or get_setting('apis', 'ogd', 'timeout_seconds', default=8)

    if not api_key:
        msg = "OGD_API_KEY not found. Please set it in .env or environment variables."
        log.error(msg)
        raise APIKeyError(msg, status_code=None, service=SERVICE_NAME)
    if not base_url or not resource_id:
        msg = "OGD base URL or resource id missing from configuration."
        log.error(msg)
        raise ConfigError(msg)

    api_url = f"{base_url.rstrip('/')}/{resource_id}"
    params = {'api-key': api_key, 'format': 'json', 'limit': limit}
    log.info(f"Requesting {limit} records from OGD API: {api_url}?api-key=***KEY_HIDDEN***")

    try:
        response = requests.get(api_url, params=params, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.Timeout as e:
        msg = f"Request to OGD API timed out after {timeout}s."
        log.error(msg); raise APITimeoutError(msg, service=SERVICE_NAME) from e
    except requests.exceptions.HTTPError as http_err:
        status_code = http_err.response.status_code
        response_text_snippet = http_err.response.text[:200] if hasattr(http_err.response, 'text') else "N/A"
        log.error(f"OGD HTTP error: {status_code} {http_err.response.reason}. Response: {response_text_snippet}")
        if status_code in (401, 403): raise APIKeyError(f"OGD authorization failed ({status_code}). Check OGD_API_KEY.", status_code=status_code, service=SERVICE_NAME) from http_err
        elif status_code == 404: raise APINotFoundError(f"OGD resource '{resource_id}' not found (404).", service=SERVICE_NAME) from http_err
        else: raise UpstreamUnavailableError(f"OGD HTTP error {status_code}.", status_code=status_code, service=SERVICE_NAME) from http_err
    except requests.exceptions.RequestException as req_err:
        msg = f"OGD request error: {req_err}"
        log.error(msg); raise UpstreamUnavailableError(msg, service=SERVICE_NAME) from req_err
    except ValueError as json_err:
        msg = f"OGD JSON decoding error: {json_err}"
        log.error(msg); raise UpstreamUnavailableError(msg, service=SERVICE_NAME) from json_err

    if not isinstance(data, dict):
        msg = f"Unexpected OGD payload type: {type(data).__name__}"
        log.error(msg); raise UpstreamUnavailableError(msg, service=SERVICE_NAME)
    if str(data.get('status', 'ok')).lower() == 'error':
        msg = f"OGD API returned error status: {data.get('message', 'Unknown API error reason')}"
        log.error(msg); raise UpstreamUnavailableError(msg, service=SERVICE_NAME)

    log.info(f"Received {len(data.get('records') or [])} OGD records (total reported: {data.get('total')}).")
    return data


def get_station_records(limit=None, api_key=None, resource_id=None, timeout=None):
    """Fetches the station record batch; returns [] when the payload has none."""
    payload = get_ogd_payload(limit=limit, api_key=api_key, resource_id=resource_id, timeout=timeout)
    records = payload.get('records') or []
    return [r for r in records if isinstance(r, dict)]
