"""
Type aliases and media types for outbound requests.
"""

from typing import Literal


# HTTP methods used by the Elpis API
HttpMethod = Literal["GET", "POST"]

# Body kinds a request can carry; None means no body
BodyType = Literal["form", "json", "multipart"]

# Media types
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json;charset=utf-8"
MULTIPART_CONTENT_TYPE = "multipart/form-data"

ACCEPT_JSON = "application/json"
ACCEPT_TEXT = "text/plain"
ACCEPT_EAF = "text/x-eaf+xml"
