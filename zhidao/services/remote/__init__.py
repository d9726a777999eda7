from zhidao.services.remote.client import RemoteServiceClient
from zhidao.services.remote.errors import (
    APIError,
    DecodingError,
    EncodingFailedError,
    InvalidRequestError,
    InvalidResponseError,
    NoDataError,
    ServerError,
    TransportError,
)

__all__ = [
    "APIError",
    "DecodingError",
    "EncodingFailedError",
    "InvalidRequestError",
    "InvalidResponseError",
    "NoDataError",
    "RemoteServiceClient",
    "ServerError",
    "TransportError",
]
