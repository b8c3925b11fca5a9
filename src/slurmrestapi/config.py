"""Client configuration loading.

Settings come either from explicit arguments, from a JSON file, or from the
``X_SLURM_*`` environment variables. Loading is kept apart from the client so
that the client itself never reads global state.
"""

import json
import os
import pathlib
from collections.abc import Mapping

import pydantic
import structlog

from .errors import ConfigurationError

logger = structlog.get_logger(__name__)

# The data models in this package are written against this API version.
DEFAULT_API_VERSION = "v0.0.38"

DEFAULT_TIMEOUT = 30.0

ENDPOINT_ENV_VAR = "X_SLURM_ENDPOINT"
USER_NAME_ENV_VAR = "X_SLURM_USER_NAME"
USER_TOKEN_ENV_VAR = "X_SLURM_USER_TOKEN"


class ClientConfig(pydantic.BaseModel):
    """Connection settings for a SLURM REST API client."""

    model_config = pydantic.ConfigDict(frozen=True)

    endpoint: str = pydantic.Field(
        description="Base URL of slurmrestd (e.g. http://localhost:6820)",
    )
    user_name: str = pydantic.Field(description="Value of X-SLURM-USER-NAME")
    token: str = pydantic.Field(description="Value of X-SLURM-USER-TOKEN", repr=False)
    api_version: str = pydantic.Field(
        DEFAULT_API_VERSION,
        description="SLURM REST API version",
    )
    timeout: float = pydantic.Field(
        DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    verify: bool = pydantic.Field(True, description="Verify TLS certificates")


def _legacy_name(name: str) -> str:
    # Older deployments export the header spelling, e.g. X-SLURM-ENDPOINT.
    return name.replace("_", "-")


def _require_env(environ: Mapping[str, str], name: str) -> str:
    for candidate in (name, _legacy_name(name)):
        value = environ.get(candidate)
        if value:
            return value
    msg = f"{name} should be set!"
    raise ConfigurationError(msg)


def config_from_env(environ: Mapping[str, str] | None = None) -> ClientConfig:
    """Build a ClientConfig from environment variables.

    Reads ``X_SLURM_ENDPOINT``, ``X_SLURM_USER_NAME`` and
    ``X_SLURM_USER_TOKEN``, falling back to their hyphenated spellings.

    Args:
        environ: Mapping to read from (default: ``os.environ``).

    Returns:
        Validated client configuration.

    Raises:
        ConfigurationError: If a variable is missing or empty.
    """
    environ = os.environ if environ is None else environ
    endpoint = _require_env(environ, ENDPOINT_ENV_VAR)
    user_name = _require_env(environ, USER_NAME_ENV_VAR)
    token = _require_env(environ, USER_TOKEN_ENV_VAR)

    try:
        return ClientConfig(endpoint=endpoint, user_name=user_name, token=token)
    except pydantic.ValidationError as exc:
        msg = f"Invalid client configuration from environment: {exc}"
        raise ConfigurationError(msg) from exc


def load_config(config_path: str | pathlib.Path) -> ClientConfig:
    """Load configuration from a JSON file.

    The file may give the token inline (``token``) or point at a file holding
    it (``token_file``), as slurmrestd tokens are usually issued by
    ``scontrol token`` into a file.

    Raises:
        ConfigurationError: If the file, or the token file, is missing or
            the content does not validate.
    """
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise ConfigurationError(msg)

    with path.open("r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            msg = f"Configuration file is not valid JSON: {config_path}"
            raise ConfigurationError(msg) from exc

    token_file = data.pop("token_file", None)
    if token_file and "token" not in data:
        token_path = pathlib.Path(token_file)
        if not token_path.exists():
            msg = f"Token file not found: {token_file}"
            raise ConfigurationError(msg)
        data["token"] = token_path.read_text().strip()

    try:
        config = ClientConfig(**data)
    except pydantic.ValidationError as exc:
        msg = f"Invalid client configuration in {config_path}: {exc}"
        raise ConfigurationError(msg) from exc

    logger.debug("Loaded client configuration", path=str(path))
    return config
