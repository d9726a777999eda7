class APIError(Exception):
    """Base class for every failure surfaced by the remote service client."""

    message = "Remote service request failed"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(self.message if not detail else f"{self.message}: {detail}")


class InvalidRequestError(APIError):
    message = "Invalid URL"


class EncodingFailedError(APIError):
    message = "Failed to encode request data"


class TransportError(APIError):
    message = "Network request failed"


class InvalidResponseError(APIError):
    message = "Invalid response from server"


class ServerError(APIError):
    message = "Server error with status code"

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(str(status_code))


class NoDataError(APIError):
    message = "No data received from server"


class DecodingError(APIError):
    message = "Failed to decode response data"
