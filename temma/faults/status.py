"""
HTTP status mapping for uncaught errors.
"""

from http import HTTPStatus

from .domains import ApplicationFault, HttpFault


# Codes missing from HTTPStatus
_EXTRA_REASONS = {
    449: "Retry With",
}


def http_status_for(exc: BaseException) -> int:
    """Return the HTTP status code reported for an exception."""
    if isinstance(exc, HttpFault):
        return exc.status
    if isinstance(exc, ApplicationFault):
        return exc.status
    return 500


def reason_phrase(code: int) -> str:
    """Status line text for a code ("Unknown" when there is none)."""
    if code in _EXTRA_REASONS:
        return _EXTRA_REASONS[code]
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
