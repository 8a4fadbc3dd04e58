"""
HTTP status descriptions used for synthesized status errors.
"""
from typing import Dict

GENERIC_STATUS_MESSAGE = "An error occurred"

STATUS_DESCRIPTIONS: Dict[int, str] = {
    100: "Continue",
    101: "Switching protocols",
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non authoritative information",
    204: "No content",
    205: "Reset content",
    206: "Partial Content",
    300: "Multiple choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See other Uri",
    304: "Not modified",
    305: "Use proxy",
    306: "Unused",
    307: "Temporary redirect",
    400: "Bad request",
    401: "Access denied",
    402: "Payment required",
    403: "Forbidden",
    404: "Page not found",
    405: "Method not allowed",
    406: "Not acceptable",
    407: "Proxy authentication required",
    408: "Request timeout",
    409: "Conflict request",
    410: "Page is gone",
    411: "Lack content length",
    412: "Precondition failed",
    413: "Request entity is too large",
    414: "Request uri is too long",
    415: "Unsupported media type",
    416: "Request range is not satisfiable",
    417: "Expected request is failed",
    500: "Internal server error",
    501: "Server does not implement a feature for request",
    502: "Bad gateway",
    503: "Service unavailable",
    504: "Gateway timeout",
    505: "Http version not supported",
}


def status_description(code: int) -> str:
    """Human readable description for a status code."""
    return STATUS_DESCRIPTIONS.get(code, GENERIC_STATUS_MESSAGE)
