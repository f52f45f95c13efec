"""
Elpis client - Python client for the Elpis speech recognition training service.
"""

from .client import Elpis
from .config import ClientConfig
from .exceptions import (
    ElpisError,
    ElpisTransportError,
    ElpisConnectError,
    ElpisTimeoutError,
    ElpisHTTPStatusError,
    InvalidURLError,
    ElpisException,
    UnexpectedResponseError,
    UsageError,
    RequestAlreadySentError,
)
from .services.response import Response

__version__ = "1.0.0"

__all__ = [
    "Elpis",
    "ClientConfig",
    "Response",
    "ElpisError",
    "ElpisTransportError",
    "ElpisConnectError",
    "ElpisTimeoutError",
    "ElpisHTTPStatusError",
    "InvalidURLError",
    "ElpisException",
    "UnexpectedResponseError",
    "UsageError",
    "RequestAlreadySentError",
    "__version__",
]
