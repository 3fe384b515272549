import os


def http_timeout() -> float:
    """Per-call timeout (seconds) for outbound HTTP requests."""

    return float(os.getenv("HTTP_TIMEOUT", "10"))
