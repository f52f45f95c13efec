"""
Response wrapper for decoding Elpis API responses.

Normalizes a completed httpx.Response into status, raw text, parsed JSON
and any error messages reported by the server.
"""

import json
import logging
from typing import Any

import httpx

from ..exceptions import ElpisException, ElpisHTTPStatusError, UnexpectedResponseError


logger = logging.getLogger(__name__)

# Top-level fields the server uses to report errors
ERROR_FIELDS = ("error", "errors")


def parse_json_body(body: str) -> tuple[Any | None, bool]:
    """
    Parse a response body as JSON.

    Args:
        body: Response body text

    Returns:
        Tuple of (parsed value, whether parsing succeeded). An empty body
        parses to None. A body that is not JSON is kept as {"data": body}.
    """
    if not body.strip():
        return None, True
    try:
        return json.loads(body), True
    except json.JSONDecodeError:
        return {"data": body}, False


def is_json_content_type(content_type: str) -> bool:
    """
    Check whether a Content-Type header declares a JSON body.

    Example:
        >>> is_json_content_type("application/json; charset=utf-8")
        True
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def extract_errors(root: Any) -> list[str]:
    """
    Collect the error messages of a parsed response.

    Returns an empty list when the root is not an object or when no error
    field is present and non-empty.
    """
    if not isinstance(root, dict):
        return []
    errors: list[str] = []
    for field in ERROR_FIELDS:
        value = root.get(field)
        if not value:
            continue
        if isinstance(value, (list, tuple)):
            errors.extend(str(item) for item in value if item)
        else:
            errors.append(str(value))
    return errors


class Response:
    """
    Decoded response from the Elpis server.

    Attributes:
        status_code: HTTP status code
        reason_phrase: HTTP status text
        content: Raw body bytes
        raw: Body decoded as text
        json: Parsed JSON root, or None when not parsed or the body was empty
        parsed: False when JSON was expected but the body was not JSON
        errors: Error messages reported by the server
    """

    def __init__(self, http_response: httpx.Response, expect_json: bool = True):
        self.status_code = http_response.status_code
        self.reason_phrase = http_response.reason_phrase or ""
        self.content = http_response.content
        self.raw = http_response.text
        self.json: Any | None = None
        self.parsed = False
        if expect_json:
            self.json, self.parsed = parse_json_body(self.raw)
            if not self.parsed:
                logger.debug("Response body is not JSON, keeping it as raw data")
            self.errors = extract_errors(self.json)
        else:
            self.errors = self._text_body_errors(http_response)

    def _text_body_errors(self, http_response: httpx.Response) -> list[str]:
        # Text and file endpoints still report failures as JSON objects
        content_type = http_response.headers.get("Content-Type", "")
        if self.is_success and not is_json_content_type(content_type):
            return []
        root, parsed = parse_json_body(self.raw)
        if not parsed:
            return []
        return extract_errors(root)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def check_for_errors(self) -> "Response":
        """
        Raise if the server reported a failure.

        Returns:
            This response, so calls can be chained

        Raises:
            ElpisException: if the body carries a non-empty error field
            ElpisHTTPStatusError: if the status is not 2xx and no error
                message was reported
        """
        if self.errors:
            raise ElpisException("; ".join(self.errors), status_code=self.status_code, errors=self.errors)
        if not self.is_success:
            raise ElpisHTTPStatusError(self.status_code, self.reason_phrase)
        return self

    def get_data(self) -> Any:
        """Return the "data" member of the parsed body, or the whole body when it has none."""
        if isinstance(self.json, dict) and "data" in self.json:
            return self.json["data"]
        return self.json

    def get(self, name: str) -> Any:
        """
        Return a named field of the response data.

        Raises:
            UnexpectedResponseError: if the data is not an object or lacks the field
        """
        data = self.get_data()
        if not isinstance(data, dict) or name not in data:
            raise UnexpectedResponseError(
                f"Response has no '{name}' field", status_code=self.status_code
            )
        return data[name]

    def get_raw(self) -> str:
        return self.raw

    def __str__(self) -> str:
        return f"{self.status_code} {self.reason_phrase} : {self.raw}"
