"""HTTP constants for the fetch layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Retry policy defaults (seconds)
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY_SECONDS = 0.5
DEFAULT_MAX_DELAY_SECONDS = 8.0
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_JITTER_FRACTION = 0.2

# Transport defaults
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "fetchkit/0.1"

JSON_CONTENT_TYPE = "application/json"
