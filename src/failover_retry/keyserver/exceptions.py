"""
Exceptions raised by key-server lookup actions.

They let the lookup action tell the retry engine which failures are worth
trying against another server and which are not.
"""


class KeyServerError(Exception):
    """
    Base exception for all key-server errors.

    Carries a ``details`` dict with the status code, endpoint and address
    involved, for structured logging.
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class KeyServerResponseError(KeyServerError):
    """
    Raised when a key server rejects the request itself (4xx other than
    404 and 429).

    The request is malformed for every server, so this error is not retried.
    """

    def __init__(self, status_code: int, message: str, details: dict | None = None):
        super().__init__(message, details)
        self.status_code = status_code


class InvalidKeyResponse(KeyServerError):
    """
    Raised when a server answers 200 but the body holds no armored key.

    Another server may hold a proper copy, so this error is retried.
    """
