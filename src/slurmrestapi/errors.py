"""Exception hierarchy for the SLURM REST API client.

Transport failures (connection refused, timeouts) are not wrapped: the
underlying ``httpx.TransportError`` propagates to the caller unchanged.
"""


class SlurmRestError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(SlurmRestError):
    """Raised when a client cannot be built from the given settings.

    Covers malformed endpoints, missing environment variables, invalid
    configuration files and HTTP client construction failures. A client
    that raised this is unusable and should not be retried as-is.
    """


class ExpiredTokenError(ConfigurationError):
    """Raised when the Slurm JWT has expired."""


class RequestBuildError(SlurmRestError):
    """Raised when a request cannot be assembled (bad header value, bad URL)."""


class SlurmHTTPError(SlurmRestError):
    """Raised when the REST API answers with a status other than 200.

    The response body is kept verbatim because slurmrestd reports most
    failures as a JSON ``errors`` payload in it.
    """

    def __init__(self, status_code: int, body: str, url: str = ""):
        self.status_code = status_code
        self.body = body
        self.url = url
        msg = f"Slurm REST API returned HTTP {status_code}"
        if url:
            msg += f" for {url}"
        msg += f": {body}"
        super().__init__(msg)


class DecodeError(SlurmRestError):
    """Raised when a 200 response body does not match the expected schema."""
