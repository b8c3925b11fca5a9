"""SLURM REST API client.

Typed asynchronous client for slurmrestd, pinned to API version v0.0.38.
Requests are authenticated with the ``x-slurm-user-name`` and
``x-slurm-user-token`` headers and responses are decoded into frozen
Pydantic models.

Exports:
    SlurmClient: Client for the ``slurm`` (controller) namespace.
    SlurmDBClient: Client for the ``slurmdb`` (accounting) namespace.
    SlurmRestApiClient: Namespace-parameterized core both are built on.
    ClientConfig: Connection settings, loadable from env or a JSON file.
    types, db_types: Modules containing Pydantic models for API responses.
    DEFAULT_API_VERSION: Default SLURM REST API version.
    DEFAULT_TIMEOUT: Default HTTP request timeout.
"""

from . import db_types, types
from .client import (
    SLURM_NAMESPACE,
    SLURMDB_NAMESPACE,
    SlurmClient,
    SlurmDBClient,
    SlurmRestApiClient,
)
from .config import (
    DEFAULT_API_VERSION,
    DEFAULT_TIMEOUT,
    ClientConfig,
    config_from_env,
    load_config,
)
from .errors import (
    ConfigurationError,
    DecodeError,
    ExpiredTokenError,
    RequestBuildError,
    SlurmHTTPError,
    SlurmRestError,
)
from .log import configure_logging

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_API_VERSION",
    "DEFAULT_TIMEOUT",
    "SLURMDB_NAMESPACE",
    "SLURM_NAMESPACE",
    "ClientConfig",
    "ConfigurationError",
    "DecodeError",
    "ExpiredTokenError",
    "RequestBuildError",
    "SlurmClient",
    "SlurmDBClient",
    "SlurmHTTPError",
    "SlurmRestApiClient",
    "SlurmRestError",
    "config_from_env",
    "configure_logging",
    "db_types",
    "load_config",
    "types",
]
