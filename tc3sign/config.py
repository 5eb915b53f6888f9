# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Client configuration for signed Tencent Cloud API calls.

Configuration is an explicit value handed to the client at construction
time.  It can be built directly in code, from environment variables
(:meth:`Credentials.from_env`), or from a YAML file whose default
location follows the XDG Base Directory Specification:

    ``$XDG_CONFIG_HOME/tc3sign/config.yaml``
    (typically ``~/.config/tc3sign/config.yaml``)

``!env VAR_NAME`` tags resolve values from environment variables at load
time, so credentials never have to be written into the file::

    credentials:
      secret_id: !env TENCENTCLOUD_SECRET_ID
      secret_key: !env TENCENTCLOUD_SECRET_KEY
    endpoint:
      service: aiart
      host: aiart.tencentcloudapi.com
      region: ap-guangzhou
      version: "2022-12-29"
    timeout: 300
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar, overload

import yaml
from platformdirs import user_config_path

from tc3sign.dotenv_loader import load_dotenv_once
from tc3sign.logging import SecretFilter


logger = logging.getLogger(__name__)

#: Application name for XDG path resolution.
_APP_NAME = "tc3sign"

ENV_SECRET_ID = "TENCENTCLOUD_SECRET_ID"
ENV_SECRET_KEY = "TENCENTCLOUD_SECRET_KEY"
ENV_SESSION_TOKEN = "TENCENTCLOUD_SESSION_TOKEN"

#: Default request timeout (five minutes; image generation is slow).
DEFAULT_TIMEOUT_SECONDS = 300


def get_config_path() -> Path:
    """Return the default config file path.

    Returns:
        ``$XDG_CONFIG_HOME/tc3sign/config.yaml``.
    """
    return user_config_path(_APP_NAME) / "config.yaml"


def get_dotenv_path() -> Path:
    """Return the default ``.env`` path inside the XDG config directory."""
    return user_config_path(_APP_NAME) / ".env"


class ConfigError(Exception):
    """Base exception for configuration errors."""


# ---------------------------------------------------------------------------
# Configuration values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Credentials:
    """Long-term (or temporary) Tencent Cloud API credentials.

    Attributes:
        secret_id: Public key identifier, sent in the Authorization header.
        secret_key: Secret used as the root of the signing key chain.
        token: Session token for temporary credentials, sent as
            ``X-TC-Token``.
    """

    secret_id: str
    secret_key: str
    token: str | None = None

    def __post_init__(self) -> None:
        """Validate and register secrets for log redaction.

        Raises:
            ValueError: If the id or key is empty.
        """
        if not self.secret_id:
            raise ValueError("Credentials secret_id must not be empty")
        if not self.secret_key:
            raise ValueError("Credentials secret_key must not be empty")
        SecretFilter.register_secret(self.secret_key)
        if self.token:
            SecretFilter.register_secret(self.token)

    def __repr__(self) -> str:
        return f"Credentials(secret_id={self.secret_id!r}, secret_key=***)"

    @classmethod
    def from_env(cls) -> "Credentials":
        """Load credentials from ``TENCENTCLOUD_*`` environment variables.

        ``.env`` files are loaded first if present.

        Raises:
            ConfigError: If the id or key variable is unset or empty.
        """
        load_dotenv_once()
        secret_id = os.environ.get(ENV_SECRET_ID, "")
        secret_key = os.environ.get(ENV_SECRET_KEY, "")
        if not secret_id:
            raise ConfigError(
                f"Environment variable '{ENV_SECRET_ID}' is not set"
            )
        if not secret_key:
            raise ConfigError(
                f"Environment variable '{ENV_SECRET_KEY}' is not set"
            )
        token = os.environ.get(ENV_SESSION_TOKEN) or None
        return cls(secret_id=secret_id, secret_key=secret_key, token=token)


@dataclass(frozen=True)
class EndpointConfig:
    """Target API product and the values sent in unsigned headers.

    Attributes:
        service: Service name used in the credential scope (e.g. ``aiart``).
        host: API host, signed as the ``host`` header.
        version: API version, sent as ``X-TC-Version``.
        region: Region, sent as ``X-TC-Region``; omitted when None.
        language: Response language, sent as ``X-TC-Language``.
        scheme: URL scheme.
    """

    service: str
    host: str
    version: str
    region: str | None = None
    language: str | None = None
    scheme: str = "https"

    def __post_init__(self) -> None:
        """Validate configuration.

        Raises:
            ValueError: If a required field is empty.
        """
        for name in ("service", "host", "version"):
            if not getattr(self, name):
                raise ValueError(f"Endpoint {name} must not be empty")
        if self.scheme not in ("http", "https"):
            raise ValueError(f"Unsupported endpoint scheme: {self.scheme}")

    @property
    def url(self) -> str:
        """Base URL that signed requests are POSTed to."""
        return f"{self.scheme}://{self.host}/"


@dataclass(frozen=True)
class ClientConfig:
    """Everything a :class:`~tc3sign.client.TencentCloudClient` needs.

    Attributes:
        credentials: API credentials.
        endpoint: Target endpoint.
        timeout_seconds: HTTP timeout for a single request attempt.
    """

    credentials: Credentials
    endpoint: EndpointConfig
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        """Validate configuration.

        Raises:
            ValueError: If the timeout is below one second.
        """
        if self.timeout_seconds < 1:
            raise ValueError(f"Timeout must be >= 1s: {self.timeout_seconds}")

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> "ClientConfig":
        """Load configuration from a YAML file.

        Values tagged with ``!env VAR_NAME`` are resolved from the
        environment at load time.  ``.env`` files are loaded first.

        Args:
            config_path: Path to the YAML file.  Defaults to
                ``~/.config/tc3sign/config.yaml`` (XDG).

        Raises:
            ConfigError: If the file is missing, malformed, or required
                values are absent.
        """
        load_dotenv_once()

        if config_path is None:
            config_path = get_config_path()

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            raw = yaml.load(f, Loader=_make_loader())

        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        return cls._from_raw(raw)

    @classmethod
    def _from_raw(cls, raw: dict) -> "ClientConfig":
        """Build config from parsed (but unresolved) YAML dict."""
        creds = _section(raw, "credentials")
        endpoint = _section(raw, "endpoint")

        credentials = Credentials(
            secret_id=_resolve(
                creds.get("secret_id"), str, required="credentials.secret_id"
            ),
            secret_key=_resolve(
                creds.get("secret_key"), str, required="credentials.secret_key"
            ),
            token=_resolve(creds.get("token"), str) or None,
        )
        endpoint_config = EndpointConfig(
            service=_resolve(
                endpoint.get("service"), str, required="endpoint.service"
            ),
            host=_resolve(endpoint.get("host"), str, required="endpoint.host"),
            version=_resolve(
                endpoint.get("version"), str, required="endpoint.version"
            ),
            region=_resolve(endpoint.get("region"), str),
            language=_resolve(endpoint.get("language"), str),
            scheme=_resolve(endpoint.get("scheme"), str, default="https"),
        )
        config = cls(
            credentials=credentials,
            endpoint=endpoint_config,
            timeout_seconds=_resolve(
                raw.get("timeout"), float, default=DEFAULT_TIMEOUT_SECONDS
            ),
        )
        logger.info(
            "Client config loaded: service=%s host=%s region=%s",
            endpoint_config.service,
            endpoint_config.host,
            endpoint_config.region,
        )
        return config


# ---------------------------------------------------------------------------
# YAML tag placeholders
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _section(raw: dict, key: str) -> dict:
    """Return a nested mapping, treating a missing section as empty."""
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a YAML mapping")
    return value


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is not set.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name)
    if value is None:
        return None
    return str(value)


_MISSING = object()

T = TypeVar("T")


@overload
def _resolve(value: object, coerce: type[T], *, default: T) -> T: ...


@overload
def _resolve(
    value: object,
    coerce: type[T],
    *,
    required: str,
) -> T: ...


@overload
def _resolve(value: object, coerce: type[T]) -> T | None: ...


def _resolve(
    value: object,
    coerce: type[Any],
    *,
    default: object = _MISSING,
    required: str = "",
) -> Any:
    """Resolve a YAML value, handling ``!env`` tags and type coercion.

    Args:
        value: Raw value from YAML (may be ``_EnvVar``, None, or a
            literal already parsed by PyYAML).
        coerce: Target type (``str``, ``int``, ``float``).
        default: Default when value is absent.
        required: Human-readable field name.  When set, raises
            ``ConfigError`` if the value is absent or empty.

    Returns:
        The resolved, coerced value, or None when optional and absent.
    """
    if not isinstance(value, _EnvVar) and isinstance(value, coerce):
        if value != "" or not required:
            return value

    resolved = _raw_resolve(value)

    if resolved is None or (required and resolved == ""):
        if required:
            if isinstance(value, _EnvVar):
                raise ConfigError(
                    f"Required config '{required}': environment variable "
                    f"'{value.var_name}' is not set"
                )
            raise ConfigError(f"Required config '{required}' is missing")
        if default is not _MISSING:
            return default
        return None

    try:
        return coerce(resolved)
    except ValueError as e:
        raise ConfigError(
            f"Cannot convert {resolved!r} to {coerce.__name__}"
        ) from e
