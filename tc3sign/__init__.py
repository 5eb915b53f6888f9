# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""TC3-HMAC-SHA256 request signing and a signed Tencent Cloud API client."""

from tc3sign.client import (
    AuthenticationError,
    TencentCloudClient,
    TencentCloudError,
    build_signed_headers,
)
from tc3sign.config import (
    ClientConfig,
    ConfigError,
    Credentials,
    EndpointConfig,
)
from tc3sign.signing import (
    SigningError,
    SignResult,
    parse_authorization_header,
    sign_request,
)


__all__ = [
    "AuthenticationError",
    "ClientConfig",
    "ConfigError",
    "Credentials",
    "EndpointConfig",
    "SignResult",
    "SigningError",
    "TencentCloudClient",
    "TencentCloudError",
    "build_signed_headers",
    "parse_authorization_header",
    "sign_request",
]
