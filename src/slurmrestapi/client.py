"""SLURM REST API client.

Provides an asynchronous HTTP client with header-token authentication, a
shared connection pool, and response validation using Pydantic models.
One core client is parameterized by its URL namespace; ``SlurmClient`` and
``SlurmDBClient`` add the endpoint methods for ``slurm`` and ``slurmdb``.
"""

import base64
import json
import time
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import pydantic
import structlog

from . import db_types, types
from .config import (
    DEFAULT_API_VERSION,
    DEFAULT_TIMEOUT,
    ClientConfig,
    config_from_env,
)
from .errors import (
    ConfigurationError,
    DecodeError,
    ExpiredTokenError,
    RequestBuildError,
    SlurmHTTPError,
)

logger = structlog.get_logger(__name__)

SLURM_NAMESPACE = "slurm"
SLURMDB_NAMESPACE = "slurmdb"

USER_NAME_HEADER = "x-slurm-user-name"
USER_TOKEN_HEADER = "x-slurm-user-token"

# Methods that never carry a request body.
_BODYLESS_METHODS = frozenset({"GET", "DELETE"})

R = TypeVar("R", bound=types.SlurmResponse)

QueryParams = Mapping[str, Any] | Sequence[tuple[str, Any]]


def validate_jwt_not_expired(token: str) -> None:
    """Check that a JWT token has not expired.

    Decodes the JWT payload without verifying the signature and checks
    the ``exp`` claim against the current time. Raises
    :class:`ExpiredTokenError` if the token is already past its
    expiration. If the token is not a valid JWT, or its ``exp`` claim is
    missing or not a number, a warning is logged and execution continues.

    Clients do not call this as a hard check: an expired token is reported
    with a warning at construction. Call it directly to fail early.

    Args:
        token: The raw JWT string (header.payload.signature).

    Raises:
        ExpiredTokenError: If the token's ``exp`` claim is in the past.
    """
    parts = token.split(".")
    if len(parts) != 3:  # noqa: PLR2004
        logger.warning("Token does not appear to be a JWT, skipping expiry check")
        return

    try:
        # JWT base64url encoding omits padding; restore it
        payload_b64 = parts[1]
        padding = 4 - len(payload_b64) % 4
        if padding != 4:  # noqa: PLR2004
            payload_b64 += "=" * padding

        payload = json.loads(base64.urlsafe_b64decode(payload_b64))
    except (ValueError, json.JSONDecodeError):
        logger.warning("Failed to decode JWT payload, skipping expiry check")
        return

    exp = payload.get("exp") if isinstance(payload, dict) else None
    if exp is None:
        logger.warning("JWT has no 'exp' claim, skipping expiry check")
        return
    if isinstance(exp, bool) or not isinstance(exp, int | float):
        logger.warning("JWT 'exp' claim is not numeric, skipping expiry check")
        return

    now = time.time()
    if now >= exp:
        msg = f"Slurm JWT has expired (exp={exp}, now={int(now)})"
        raise ExpiredTokenError(msg)

    logger.info("JWT expiry validated", expires_in_seconds=int(exp - now))


def _check_header_value(name: str, value: str) -> None:
    """Reject header values httpx would send malformed or refuse to send."""
    for char in value:
        if char != "\t" and not " " <= char <= "~":
            msg = f"Invalid character {char!r} in value of header {name}"
            raise RequestBuildError(msg)


def _parse_endpoint(endpoint: str) -> httpx.URL:
    try:
        url = httpx.URL(endpoint)
    except (httpx.InvalidURL, TypeError) as exc:
        msg = f"Unable to parse endpoint into URL: {endpoint!r}"
        raise ConfigurationError(msg) from exc

    if url.scheme not in ("http", "https") or not url.host:
        msg = f"Endpoint must be an absolute http(s) URL: {endpoint!r}"
        raise ConfigurationError(msg)

    # Keep any path prefix (reverse proxies) and make it joinable.
    return url.copy_with(path=url.path.rstrip("/") + "/")


def path_segment(value: str | int) -> str:
    """Percent-encode an identifier so it stays a single path segment."""
    encoded = quote(str(value), safe="")
    # "." and ".." would be resolved as dot segments when joined.
    if encoded in (".", ".."):
        encoded = encoded.replace(".", "%2E")
    return encoded


class SlurmRestApiClient:
    """HTTP client for one namespace of the SLURM REST API.

    Holds the connection settings and a single ``httpx.AsyncClient`` whose
    connection pool is shared by every call made through this instance.
    Nothing is mutated after construction, so concurrent calls from multiple
    tasks are safe. Can be used as an async context manager for cleanup.
    """

    namespace: str = SLURM_NAMESPACE

    def __init__(  # noqa: PLR0913
        self,
        user_name: str,
        token: str,
        endpoint: str,
        *,
        namespace: str | None = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the REST API client.

        Args:
            user_name: Sent as ``x-slurm-user-name``.
            token: Sent as ``x-slurm-user-token``.
            endpoint: Base URL of slurmrestd (e.g., "http://localhost:6820").
            namespace: URL namespace, "slurm" or "slurmdb" (default: the
                class attribute).
            api_version: SLURM REST API version (default: v0.0.38).
            timeout: Request timeout in seconds (default: 30.0).
            verify: Whether to verify TLS certificates.
            transport: Optional httpx transport, mainly for tests.

        Raises:
            ConfigurationError: If the endpoint is not a usable URL, the
                timeout is not positive, or no HTTP client can be created.
        """
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ConfigurationError(msg)

        self.user_name = user_name
        self._token = token
        self.namespace = namespace or self.namespace
        self.api_version = api_version
        self.endpoint = _parse_endpoint(endpoint)
        self.base_url = self.endpoint.join(f"{self.namespace}/{self.api_version}/")

        try:
            validate_jwt_not_expired(token)
        except ExpiredTokenError as exc:
            # Requests will be rejected by slurmrestd with 401.
            logger.warning("Slurm token has expired", error=str(exc))

        try:
            self._client = httpx.AsyncClient(
                timeout=timeout,
                verify=verify,
                transport=transport,
            )
        except (OSError, ValueError) as exc:
            msg = f"Unable to create HTTP client: {exc}"
            raise ConfigurationError(msg) from exc

        logger.debug(
            "Created REST client",
            base_url=str(self.base_url),
            user_name=user_name,
        )

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any):
        """Create a client from a validated :class:`ClientConfig`."""
        return cls(
            user_name=config.user_name,
            token=config.token,
            endpoint=config.endpoint,
            api_version=config.api_version,
            timeout=config.timeout,
            verify=config.verify,
            **kwargs,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **kwargs: Any):
        """Create a client from the ``X_SLURM_*`` environment variables.

        Raises:
            ConfigurationError: If any required variable is missing.
        """
        return cls.from_config(config_from_env(environ), **kwargs)

    async def __aenter__(self):
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context manager and release pooled connections."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if open."""
        if not self._client.is_closed:
            await self._client.aclose()

    def build_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: QueryParams | None = None,
    ) -> httpx.Request:
        """Build a fully-formed request for this client's namespace.

        Args:
            method: HTTP method.
            path: Path relative to ``<namespace>/<api_version>/``
                (e.g., "nodes" or "node/n001").
            body: JSON-serializable body or Pydantic model. Dropped for GET
                and DELETE; sent as ``null`` for other methods when omitted.
            params: Optional query parameters.

        Returns:
            The request, ready to send.

        Raises:
            RequestBuildError: If a header value contains invalid characters
                or the URL cannot be joined.
        """
        method = method.upper()
        try:
            url = self.base_url.join(path.lstrip("/"))
        except httpx.InvalidURL as exc:
            msg = f"Unable to join {path!r} onto {self.base_url}"
            raise RequestBuildError(msg) from exc

        _check_header_value(USER_NAME_HEADER, self.user_name)
        _check_header_value(USER_TOKEN_HEADER, self._token)
        headers = {
            USER_NAME_HEADER: self.user_name,
            USER_TOKEN_HEADER: self._token,
            "content-type": "application/json",
        }

        content = None
        if method not in _BODYLESS_METHODS:
            if isinstance(body, pydantic.BaseModel):
                body = types.to_wire(body)
            # A missing body is still sent, as JSON null.
            try:
                content = json.dumps(body).encode()
            except (TypeError, ValueError) as exc:
                msg = f"Request body is not JSON serializable: {exc}"
                raise RequestBuildError(msg) from exc

        return self._client.build_request(
            method,
            url,
            headers=headers,
            params=params,
            content=content,
        )

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send one request. Transport errors propagate unchanged."""
        start_time = time.time()
        try:
            logger.debug(
                "Making API request",
                method=request.method,
                url=str(request.url),
            )
            response = await self._client.send(request)
        except httpx.HTTPError:
            duration = time.time() - start_time
            logger.exception(
                "API request failed",
                url=str(request.url),
                duration_seconds=round(duration, 3),
            )
            raise

        duration = time.time() - start_time
        logger.debug(
            "API request completed",
            status_code=response.status_code,
            duration_seconds=round(duration, 3),
        )
        return response

    async def _fetch(
        self,
        path: str,
        response_model: type[R],
        params: QueryParams | None = None,
    ) -> R:
        """GET ``path`` and decode the body into ``response_model``.

        Raises:
            httpx.TransportError: If the request could not be completed.
            SlurmHTTPError: If the status code is not 200.
            DecodeError: If the body does not match ``response_model``.
        """
        request = self.build_request("GET", path, params=params)
        response = await self.send(request)

        if response.status_code != httpx.codes.OK:
            logger.error(
                "API returned unexpected status",
                url=str(request.url),
                status_code=response.status_code,
            )
            raise SlurmHTTPError(response.status_code, response.text, str(request.url))

        try:
            result = response_model.model_validate_json(response.content)
        except pydantic.ValidationError as exc:
            msg = (
                f"Response from {request.url} does not match "
                f"{response_model.__name__}: {exc}"
            )
            raise DecodeError(msg) from exc

        # Upstream errors are data for the caller, not failures.
        for error_msg in result.error_messages:
            logger.warning("API error response", path=path, error_message=error_msg)
        return result


def _drop_none(filters: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in filters.items() if value is not None}


def _update_time_params(update_time: int | None) -> dict[str, Any]:
    params = {}
    if update_time is not None:
        params["update_time"] = update_time
    return params


class SlurmClient(SlurmRestApiClient):
    """Client for the slurmctld endpoints under ``slurm/<api_version>/``."""

    namespace = SLURM_NAMESPACE

    async def ping(self) -> types.PingsResponse:
        """Ping the slurmctld daemons."""
        return await self._fetch("ping", types.PingsResponse)

    async def get_nodes(self, update_time: int | None = None) -> types.NodesResponse:
        """Fetch all node information.

        Args:
            update_time: Optional Unix timestamp to filter nodes changed
                since this time.
        """
        return await self._fetch(
            "nodes", types.NodesResponse, params=_update_time_params(update_time)
        )

    async def get_node(self, name: str) -> types.NodesResponse:
        """Fetch a single node. The response holds a one-element node list."""
        return await self._fetch(f"node/{path_segment(name)}", types.NodesResponse)

    async def get_partitions(
        self, update_time: int | None = None
    ) -> types.PartitionsResponse:
        """Fetch all partitions."""
        return await self._fetch(
            "partitions",
            types.PartitionsResponse,
            params=_update_time_params(update_time),
        )

    async def get_partition(self, name: str) -> types.PartitionsResponse:
        return await self._fetch(
            f"partition/{path_segment(name)}", types.PartitionsResponse
        )

    async def get_reservations(
        self, update_time: int | None = None
    ) -> types.ReservationsResponse:
        """Fetch all reservations."""
        return await self._fetch(
            "reservations",
            types.ReservationsResponse,
            params=_update_time_params(update_time),
        )

    async def get_reservation(self, name: str) -> types.ReservationsResponse:
        return await self._fetch(
            f"reservation/{path_segment(name)}", types.ReservationsResponse
        )

    async def get_diag(self) -> types.DiagResponse:
        """Fetch slurmctld scheduler statistics."""
        return await self._fetch("diag", types.DiagResponse)

    async def get_jobs(self, update_time: int | None = None) -> types.JobsResponse:
        """Fetch all jobs known to the controller.

        Args:
            update_time: Optional Unix timestamp to filter jobs changed since
                this time.
        """
        return await self._fetch(
            "jobs", types.JobsResponse, params=_update_time_params(update_time)
        )

    async def get_job(self, job_id: int | str) -> types.JobsResponse:
        return await self._fetch(f"job/{path_segment(job_id)}", types.JobsResponse)

    async def get_licenses(self) -> types.LicensesResponse:
        return await self._fetch("licenses", types.LicensesResponse)


class SlurmDBClient(SlurmRestApiClient):
    """Client for the slurmdbd endpoints under ``slurmdb/<api_version>/``."""

    namespace = SLURMDB_NAMESPACE

    async def get_diag(self) -> db_types.DbDiagResponse:
        """Fetch slurmdbd RPC and rollup statistics."""
        return await self._fetch("diag", db_types.DbDiagResponse)

    async def get_jobs(self, **filters: Any) -> db_types.DbJobsResponse:
        """Fetch accounting records of jobs.

        Keyword arguments are passed as query filters understood by slurmdbd
        (e.g. ``users="alice"``, ``start_time=1690000000``); ``None`` values
        are dropped.
        """
        return await self._fetch(
            "jobs", db_types.DbJobsResponse, params=_drop_none(filters)
        )

    async def get_job(self, job_id: int | str) -> db_types.DbJobsResponse:
        return await self._fetch(f"job/{path_segment(job_id)}", db_types.DbJobsResponse)

    async def get_accounts(self) -> db_types.AccountsResponse:
        return await self._fetch("accounts", db_types.AccountsResponse)

    async def get_account(self, name: str) -> db_types.AccountsResponse:
        return await self._fetch(
            f"account/{path_segment(name)}", db_types.AccountsResponse
        )

    async def get_users(self) -> db_types.UsersResponse:
        return await self._fetch("users", db_types.UsersResponse)

    async def get_user(self, name: str) -> db_types.UsersResponse:
        return await self._fetch(f"user/{path_segment(name)}", db_types.UsersResponse)

    async def get_qos(self) -> db_types.QosResponse:
        """Fetch all QOS definitions."""
        return await self._fetch("qos", db_types.QosResponse)

    async def get_single_qos(self, name: str) -> db_types.QosResponse:
        return await self._fetch(f"qos/{path_segment(name)}", db_types.QosResponse)

    async def get_clusters(self) -> db_types.ClustersResponse:
        return await self._fetch("clusters", db_types.ClustersResponse)

    async def get_cluster(self, name: str) -> db_types.ClustersResponse:
        return await self._fetch(
            f"cluster/{path_segment(name)}", db_types.ClustersResponse
        )

    async def get_tres(self) -> db_types.TresResponse:
        return await self._fetch("tres", db_types.TresResponse)

    async def get_wckeys(self) -> db_types.WckeysResponse:
        return await self._fetch("wckeys", db_types.WckeysResponse)

    async def get_wckey(self, wckey_id: int | str) -> db_types.WckeysResponse:
        return await self._fetch(
            f"wckey/{path_segment(wckey_id)}", db_types.WckeysResponse
        )

    async def get_associations(self, **filters: Any) -> db_types.AssociationsResponse:
        """Fetch associations, optionally filtered (account, cluster, user, partition)."""
        return await self._fetch(
            "associations", db_types.AssociationsResponse, params=_drop_none(filters)
        )
