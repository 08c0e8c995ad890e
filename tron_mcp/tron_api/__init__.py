"""HTTP client wrappers for the TRON upstream APIs."""

from .address import (
    AddressDecodeError,
    normalize_address_like,
    parse_address_meta,
    to_hex_address,
)
from .client import (
    BadJsonError,
    HttpStatusError,
    NetworkError,
    NonJsonResponseError,
    UpstreamCallResult,
    UpstreamClient,
    UpstreamError,
    UpstreamTimeoutError,
)
from .trongrid import TronGridClient
from .tronscan import TronScanClient

__all__ = [
    "AddressDecodeError",
    "BadJsonError",
    "HttpStatusError",
    "NetworkError",
    "NonJsonResponseError",
    "TronGridClient",
    "TronScanClient",
    "UpstreamCallResult",
    "UpstreamClient",
    "UpstreamError",
    "UpstreamTimeoutError",
    "normalize_address_like",
    "parse_address_meta",
    "to_hex_address",
]
