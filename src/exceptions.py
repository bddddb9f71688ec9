# File: src/exceptions.py

"""
Custom exception hierarchy for CitySafe.

Configuration problems, invalid query parameters, and upstream provider
failures each get their own type so callers (the HTTP layer in app.py) can
map them to the right response without string matching.
"""


# --- Configuration Errors ---
class ConfigError(Exception):
    """Raised when the configuration cannot be loaded or is invalid."""
    pass


class ConfigFileNotFoundError(ConfigError, FileNotFoundError):
    """Raised when config/config.yaml does not exist."""
    pass


# --- Request Validation ---
class ValidationError(ValueError):
    """Raised when a required request parameter is missing or unparseable.

    Attributes:
        field (str | None): Name of the offending parameter, if known.
    """
    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


# --- Upstream Provider Errors ---
class APIError(Exception):
    """Base class for errors talking to an upstream air quality provider.

    The message is prefixed with the service name and suffixed with the
    status code when one is available, e.g.
    "OGD API Error: request timed out (Status: 504)".

    Attributes:
        message (str): The bare error message without prefix/suffix.
        status_code (int | None): Upstream HTTP status code, if any.
        service (str | None): Name of the upstream service.
    """
    def __init__(self, message, status_code=None, service=None):
        self.message = message
        self.status_code = status_code
        self.service = service
        full_message = f"{service} API Error: {message}" if service else message
        if status_code is not None:
            full_message = f"{full_message} (Status: {status_code})"
        super().__init__(full_message)


class UpstreamUnavailableError(APIError):
    """The provider fetch failed (network error, HTTP error, bad payload)."""
    pass


class APITimeoutError(UpstreamUnavailableError):
    """The provider did not answer within the configured timeout."""
    pass


class APIKeyError(UpstreamUnavailableError):
    """The provider rejected our credentials."""
    def __init__(self, message, status_code=401, service=None):
        super().__init__(message, status_code=status_code, service=service)


class APINotFoundError(UpstreamUnavailableError):
    """The provider endpoint or resource id does not exist."""
    def __init__(self, message, status_code=404, service=None):
        super().__init__(message, status_code=status_code, service=service)


class UpstreamEmptyError(APIError):
    """The provider answered but returned no usable records."""
    pass


class NoGeolocatedRecordsError(UpstreamEmptyError):
    """Records were returned, but none exposes a parseable lat/lon pair."""
    pass


class UnconfiguredProviderError(Exception):
    """No provider API key is configured.

    The point AQI query never raises this (it degrades to a simulated value);
    only the provider debug introspection does.
    """
    pass
