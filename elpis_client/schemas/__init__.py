"""
Pydantic schemas package.

Exports request type aliases, media types and endpoint descriptors.
"""

from .request import (
    HttpMethod,
    BodyType,
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    MULTIPART_CONTENT_TYPE,
    ACCEPT_JSON,
    ACCEPT_TEXT,
    ACCEPT_EAF,
)

from .endpoint import Endpoint, ResultShape

__all__ = [
    # Request types
    "HttpMethod",
    "BodyType",
    # Media types
    "FORM_CONTENT_TYPE",
    "JSON_CONTENT_TYPE",
    "MULTIPART_CONTENT_TYPE",
    "ACCEPT_JSON",
    "ACCEPT_TEXT",
    "ACCEPT_EAF",
    # Endpoint schemas
    "Endpoint",
    "ResultShape",
]
