"""
Request builders for sending HTTP requests to the Elpis API.

Each request kind is its own class, chosen when the request is created:

- GetRequest: query-string parameters, no body
- FormRequest: URL-encoded form body, streamed one parameter at a time
- JsonRequest: a single JSON object body, serialized at send time
- MultipartRequest: multipart/form-data body with text and file parts

A request is built in two phases. Setters accumulate headers, cookies and
parameters; send() then finalizes the headers, streams the body through an
httpx client and returns the completed httpx.Response. A request can only be
sent once.
"""

import json
import logging
import mimetypes
import types
import uuid
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any, BinaryIO, Iterable, Iterator, Mapping, Sequence
from urllib.parse import quote_plus

import httpx

from ..exceptions import (
    ElpisConnectError,
    ElpisTimeoutError,
    ElpisTransportError,
    InvalidURLError,
    RequestAlreadySentError,
)
from ..schemas.request import (
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    MULTIPART_CONTENT_TYPE,
    HttpMethod,
)


logger = logging.getLogger(__name__)

# Read size for streaming uploaded files
CHUNK_SIZE = 64 * 1024

_SEQUENCE_TYPES = (list, tuple, set, frozenset, types.GeneratorType)


def encode_form_field(name: Any, value: Any) -> str:
    """
    Percent-encode a single name=value pair as UTF-8.

    Spaces become '+' and every reserved character is escaped, so the
    fragment can be joined to others with '&'.

    Example:
        >>> encode_form_field("tier", "Phrase & Word")
        'tier=Phrase+%26+Word'
    """
    return quote_plus(str(name), encoding="utf-8") + "=" + quote_plus(str(value), encoding="utf-8")


def iter_values(value: Any) -> Iterator[Any]:
    """
    Yield the values a parameter expands to.

    None yields nothing. Lists, tuples, sets and generators yield each of
    their non-None elements in order. Anything else is yielded as is.
    """
    if value is None:
        return
    if isinstance(value, _SEQUENCE_TYPES):
        for item in value:
            if item is not None:
                yield item
    else:
        yield value


def iter_pairs(pairs: Mapping[Any, Any] | Sequence[Any] | None) -> Iterator[tuple[Any, Any]]:
    """
    Yield (name, value) pairs from a mapping or a flat [n1, v1, n2, v2, ...] sequence.

    A trailing unpaired element of a flat sequence is ignored.
    """
    if pairs is None:
        return
    if isinstance(pairs, Mapping):
        yield from pairs.items()
        return
    for i in range(0, len(pairs) - 1, 2):
        yield pairs[i], pairs[i + 1]


class HttpRequest:
    """
    Base class holding what every request kind shares.

    Attributes:
        url: Target URL
        headers: Request headers; the last value set for a name wins
        cookies: Cookies sent as a single Cookie header
        sent: Whether send() has been called
    """
    method: HttpMethod = "GET"

    def __init__(self, url: str | httpx.URL, authorization: str | None = None):
        self.url = str(url)
        self.headers: dict[str, str] = {}
        self.cookies: dict[str, str] = {}
        self.sent = False
        if authorization is not None:
            self.set_header("Authorization", authorization)

    def set_header(self, name: str, value: str) -> "HttpRequest":
        self._check_not_sent()
        self.headers[name] = value
        return self

    def set_cookie(self, name: str, value: str) -> "HttpRequest":
        self._check_not_sent()
        self.cookies[name] = value
        return self

    def set_cookies(self, cookies: Mapping[str, str] | Sequence[str] | None) -> "HttpRequest":
        """Add cookies from a mapping or a flat [name1, value1, name2, value2, ...] list."""
        for name, value in iter_pairs(cookies):
            self.set_cookie(name, value)
        return self

    def cookie_header(self) -> str | None:
        """Return the Cookie header value, or None when no cookies are set."""
        if not self.cookies:
            return None
        return "; ".join(f"{name}={value}" for name, value in self.cookies.items())

    def build_headers(self) -> dict[str, str]:
        """Return the final header set sent with the request."""
        headers = dict(self.headers)
        cookie = self.cookie_header()
        if cookie is not None:
            headers["Cookie"] = cookie
        return headers

    def target_url(self) -> str:
        return self.url

    def body_text(self) -> str:
        """Return the accumulated body as text, for logging."""
        return ""

    @contextmanager
    def open_body(self) -> Iterator[bytes | Iterable[bytes] | None]:
        """Yield the request content; resources it needs are released on exit."""
        yield None

    def send(self, client: httpx.Client) -> httpx.Response:
        """
        Send the request and return the completed response.

        Args:
            client: httpx client used as the transport

        Returns:
            The httpx response with its body already read

        Raises:
            RequestAlreadySentError: if the request was sent before
            ElpisTimeoutError: if the request timed out
            ElpisConnectError: if the server could not be reached
            InvalidURLError: if the URL is malformed or unsupported
            ElpisTransportError: for any other transport failure
        """
        self._check_not_sent()
        self.sent = True
        url = self.target_url()
        logger.debug("Sending %s %s", self.method, url)
        try:
            with self.open_body() as content:
                request = client.build_request(
                    self.method, url, headers=self.build_headers(), content=content
                )
                return client.send(request)
        except httpx.TimeoutException as exc:
            raise ElpisTimeoutError(f"Request to {url} timed out") from exc
        except httpx.ConnectError as exc:
            raise ElpisConnectError(f"Failed to connect to {url}: {exc}") from exc
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidURLError(f"Invalid URL {url}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ElpisTransportError(f"Request to {url} failed: {exc}") from exc

    def _check_not_sent(self) -> None:
        if self.sent:
            raise RequestAlreadySentError()

    def __str__(self) -> str:
        return f"{self.method} {self.target_url()} : {self.body_text()}"


class UrlEncodedRequest(HttpRequest):
    """Request whose parameters are URL-encoded name=value fragments."""

    def __init__(self, url: str | httpx.URL, authorization: str | None = None):
        super().__init__(url, authorization)
        self.fragments: list[str] = []

    def set_parameter(self, name: str, value: Any) -> "UrlEncodedRequest":
        """
        Add a parameter.

        None values are ignored so optional parameters can be passed through
        unconditionally. Sequence values add one parameter per element.
        """
        self._check_not_sent()
        for item in iter_values(value):
            fragment = encode_form_field(name, item)
            if self.fragments:
                fragment = "&" + fragment
            self.fragments.append(fragment)
        return self

    def set_parameters(self, parameters: Mapping[str, Any] | Sequence[Any] | None) -> "UrlEncodedRequest":
        for name, value in iter_pairs(parameters):
            self.set_parameter(str(name), value)
        return self

    def encoded_parameters(self) -> str:
        return "".join(self.fragments)


class GetRequest(UrlEncodedRequest):
    """GET request; parameters are sent in the query string."""
    method: HttpMethod = "GET"

    def target_url(self) -> str:
        query = self.encoded_parameters()
        if not query:
            return self.url
        separator = "&" if "?" in self.url else "?"
        return self.url + separator + query


class FormRequest(UrlEncodedRequest):
    """POST request with an application/x-www-form-urlencoded body."""
    method: HttpMethod = "POST"

    def build_headers(self) -> dict[str, str]:
        headers = super().build_headers()
        headers.setdefault("Content-Type", FORM_CONTENT_TYPE)
        return headers

    def body_text(self) -> str:
        return self.encoded_parameters()

    @contextmanager
    def open_body(self) -> Iterator[bytes | Iterable[bytes] | None]:
        if not self.fragments:
            yield b""
        else:
            # One chunk per parameter, in the order they were added
            yield (fragment.encode("ascii") for fragment in self.fragments)


class JsonRequest(HttpRequest):
    """POST request whose body is a single JSON object."""
    method: HttpMethod = "POST"

    def __init__(self, url: str | httpx.URL, authorization: str | None = None):
        super().__init__(url, authorization)
        self.fields: dict[str, Any] | None = None

    def set_json_parameter(self, name: str, value: Any) -> "JsonRequest":
        """
        Set a field of the JSON body.

        The first call sets the Content-Type header. Setting a name again
        overwrites its value; None values are ignored.
        """
        self._check_not_sent()
        if value is None:
            return self
        if self.fields is None:
            self.set_header("Content-Type", JSON_CONTENT_TYPE)
            self.fields = {}
        self.fields[name] = value
        return self

    def set_json_parameters(self, parameters: Mapping[str, Any] | None) -> "JsonRequest":
        for name, value in iter_pairs(parameters):
            self.set_json_parameter(name, value)
        return self

    def generate_json(self) -> str | None:
        """Serialize the accumulated fields, or return None when there are none."""
        if self.fields is None:
            return None
        return json.dumps(self.fields, separators=(",", ":"))

    def body_text(self) -> str:
        return self.generate_json() or ""

    @contextmanager
    def open_body(self) -> Iterator[bytes | Iterable[bytes] | None]:
        body = self.generate_json()
        yield body.encode("utf-8") if body is not None else b""


def _quote_header_value(value: str) -> str:
    """Escape characters that cannot appear inside a quoted header parameter."""
    return value.replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


@dataclass
class FormPart:
    """A single part of a multipart body: either a text value or a file."""
    name: str
    value: str | None = None
    path: Path | None = None

    @property
    def is_file(self) -> bool:
        return self.path is not None

    def header_block(self, boundary: str) -> bytes:
        disposition = f'form-data; name="{_quote_header_value(self.name)}"'
        lines = [f"--{boundary}"]
        if self.path is not None:
            disposition += f'; filename="{_quote_header_value(self.path.name)}"'
            lines.append(f"Content-Disposition: {disposition}")
            lines.append(f"Content-Type: {guess_content_type(self.path.name)}")
        else:
            lines.append(f"Content-Disposition: {disposition}")
        return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


class MultipartRequest(HttpRequest):
    """
    POST request with a multipart/form-data body.

    A boundary is generated once per request. Files are opened only when the
    request is sent and are closed again on every exit path.
    """
    method: HttpMethod = "POST"

    def __init__(self, url: str | httpx.URL, authorization: str | None = None):
        super().__init__(url, authorization)
        self.boundary = uuid.uuid4().hex
        self.parts: list[FormPart] = []
        self.set_header("Content-Type", f"{MULTIPART_CONTENT_TYPE}; boundary={self.boundary}")

    def set_parameter(self, name: str, value: Any) -> "MultipartRequest":
        """
        Add a parameter; path values are uploaded as files, anything else as text.
        """
        self._check_not_sent()
        for item in iter_values(value):
            if isinstance(item, PurePath):
                self.set_file(name, item)
            else:
                self.parts.append(FormPart(name=name, value=str(item)))
        return self

    def set_parameters(self, parameters: Mapping[str, Any] | Sequence[Any] | None) -> "MultipartRequest":
        for name, value in iter_pairs(parameters):
            self.set_parameter(str(name), value)
        return self

    def set_file(self, name: str, path: str | PurePath) -> "MultipartRequest":
        self._check_not_sent()
        self.parts.append(FormPart(name=name, path=Path(path)))
        return self

    def body_text(self) -> str:
        chunks = []
        for part in self.parts:
            chunks.append(part.header_block(self.boundary).decode("utf-8"))
            chunks.append(f"<{part.path}>" if part.is_file else part.value)
            chunks.append("\r\n")
        chunks.append(f"--{self.boundary}--\r\n")
        return "".join(chunks)

    @contextmanager
    def open_body(self) -> Iterator[bytes | Iterable[bytes] | None]:
        with ExitStack() as stack:
            handles = [
                stack.enter_context(part.path.open("rb")) if part.path is not None else None
                for part in self.parts
            ]
            yield self._iter_body(handles)

    def _iter_body(self, handles: list[BinaryIO | None]) -> Iterator[bytes]:
        for part, handle in zip(self.parts, handles):
            yield part.header_block(self.boundary)
            if handle is None:
                yield part.value.encode("utf-8")
            else:
                while True:
                    chunk = handle.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
            yield b"\r\n"
        yield f"--{self.boundary}--\r\n".encode("ascii")
