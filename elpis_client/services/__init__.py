# Services package

from .requests import (
    HttpRequest,
    GetRequest,
    FormRequest,
    JsonRequest,
    MultipartRequest,
    encode_form_field,
)
from .response import Response
from .lexicon import parse_lexicon, format_lexicon, read_lexicon_file

__all__ = [
    "HttpRequest",
    "GetRequest",
    "FormRequest",
    "JsonRequest",
    "MultipartRequest",
    "encode_form_field",
    "Response",
    "parse_lexicon",
    "format_lexicon",
    "read_lexicon_file",
]
