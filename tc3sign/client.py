# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""HTTP client for TC3-signed Tencent Cloud API calls.

Every call is a JSON ``POST`` to ``/`` of the endpoint host.  Only
``content-type`` and ``host`` are signed; action, version, region,
timestamp and nonce travel in ``X-TC-*`` headers next to
``Authorization``.

The client performs a single attempt per :meth:`TencentCloudClient.call`.
Callers that retry (for example on HTTP 429/503) call again, which
re-signs with a fresh timestamp and nonce.
"""

from __future__ import annotations

import json
import logging
import secrets
import time
from types import TracebackType
from typing import Any

import httpx

from tc3sign.config import ClientConfig, Credentials, EndpointConfig
from tc3sign.signing import SigningError, sign_request


logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"

_SIGNED_HEADER_NAMES = ("content-type", "host")

# Nonce range used by the web console; any positive integer is accepted
_NONCE_MAX = 1_000_000


class TencentCloudError(Exception):
    """Error reported by (or about) a Tencent Cloud API response.

    Attributes:
        code: API error code (e.g. ``InvalidParameter``).
        message: Human-readable error message.
        request_id: ``RequestId`` of the failed call, if known.
    """

    def __init__(
        self, code: str, message: str, request_id: str | None = None
    ) -> None:
        self.code = code
        self.message = message
        self.request_id = request_id
        detail = f"{code}: {message}"
        if request_id:
            detail += f" (RequestId: {request_id})"
        super().__init__(detail)


class AuthenticationError(TencentCloudError):
    """The request could not be authenticated.

    Raised when the signature cannot be built locally, or when the
    service rejects it with an ``AuthFailure`` error code.
    """


def encode_payload(payload: dict[str, Any]) -> bytes:
    """Serialize a request body; these exact bytes are hashed and sent."""
    body = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return body.encode("utf-8")


def new_nonce() -> int:
    """Fresh random positive nonce for one request."""
    return secrets.randbelow(_NONCE_MAX - 1) + 1


def build_signed_headers(
    *,
    credentials: Credentials,
    endpoint: EndpointConfig,
    action: str,
    payload: bytes,
    timestamp: int | None = None,
    nonce: int | None = None,
) -> dict[str, str]:
    """Sign a request body and return the full outgoing header set.

    Args:
        credentials: Secret id and key.
        endpoint: Target endpoint.
        action: API action name (e.g. ``TextToImageLite``).
        payload: Exact JSON body bytes.
        timestamp: Unix seconds; defaults to now.
        nonce: Replay nonce; defaults to a fresh random integer.

    Returns:
        Headers to send, including ``Authorization``.

    Raises:
        AuthenticationError: If the request cannot be signed.
    """
    if timestamp is None:
        timestamp = int(time.time())
    if nonce is None:
        nonce = new_nonce()

    headers = {
        "Content-Type": CONTENT_TYPE,
        "Host": endpoint.host,
    }
    try:
        result = sign_request(
            credentials=credentials,
            service=endpoint.service,
            timestamp=timestamp,
            method="POST",
            path="/",
            query="",
            headers=headers,
            signed_header_names=_SIGNED_HEADER_NAMES,
            payload=payload,
        )
    except SigningError as e:
        raise AuthenticationError(
            "SigningFailed", f"request could not be authenticated: {e}"
        ) from e

    logger.debug(
        "Signed %s for %s (scope=%s, signed_headers=%s)",
        action,
        endpoint.host,
        result.credential_scope,
        result.signed_headers,
    )

    headers["Authorization"] = result.authorization
    headers["X-TC-Action"] = action
    headers["X-TC-Version"] = endpoint.version
    headers["X-TC-Timestamp"] = str(result.timestamp)
    headers["X-TC-Nonce"] = str(nonce)
    if endpoint.region:
        headers["X-TC-Region"] = endpoint.region
    if endpoint.language:
        headers["X-TC-Language"] = endpoint.language
    if credentials.token:
        headers["X-TC-Token"] = credentials.token
    return headers


def unwrap_response(data: object) -> dict[str, Any]:
    """Extract the ``Response`` object from an API reply body.

    Raises:
        AuthenticationError: For ``AuthFailure*`` error codes.
        TencentCloudError: For any other API error, or a body without a
            ``Response`` object.
    """
    if not isinstance(data, dict) or not isinstance(
        data.get("Response"), dict
    ):
        raise TencentCloudError(
            "InvalidResponse", "Response body has no 'Response' object"
        )

    response: dict[str, Any] = data["Response"]
    error = response.get("Error")
    if error is None:
        return response

    if not isinstance(error, dict):
        error = {"Message": str(error)}
    code = str(error.get("Code", "UnknownError"))
    message = str(error.get("Message", ""))
    request_id = response.get("RequestId")
    if code.startswith("AuthFailure"):
        raise AuthenticationError(
            code, f"request could not be authenticated: {message}", request_id
        )
    raise TencentCloudError(code, message, request_id)


class TencentCloudClient:
    """Client for one signed Tencent Cloud API endpoint.

    Example:
        config = ClientConfig.from_yaml()
        with TencentCloudClient(config) as client:
            result = client.call("TextToImageLite", {"Prompt": "a cat"})
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Credentials, endpoint and timeout.
            http_client: Client to send requests with.  When omitted, one
                is created (and owned) with the configured timeout.
        """
        self._config = config
        self._owns_http_client = http_client is None
        if http_client is None:
            http_client = httpx.Client(timeout=config.timeout_seconds)
        self._http = http_client

    @property
    def config(self) -> ClientConfig:
        return self._config

    def call(self, action: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Invoke an API action and return its ``Response`` object.

        Args:
            action: API action name.
            payload: Request parameters (serialized as JSON).

        Returns:
            The ``Response`` object without the envelope.

        Raises:
            AuthenticationError: If signing fails or the signature is
                rejected.
            TencentCloudError: If the API reports an error.
            httpx.HTTPStatusError: On non-2xx responses without an API
                error body.
            httpx.TransportError: On network failures.
        """
        endpoint = self._config.endpoint
        body = encode_payload(payload)
        headers = build_signed_headers(
            credentials=self._config.credentials,
            endpoint=endpoint,
            action=action,
            payload=body,
        )

        response = self._http.post(endpoint.url, content=body, headers=headers)
        logger.debug(
            "%s returned HTTP %d (%d bytes)",
            action,
            response.status_code,
            len(response.content),
        )

        try:
            data = response.json()
        except ValueError:
            response.raise_for_status()
            raise TencentCloudError(
                "InvalidResponse",
                f"Response body is not JSON (HTTP {response.status_code})",
            ) from None

        try:
            return unwrap_response(data)
        except TencentCloudError as e:
            if e.code == "InvalidResponse":
                response.raise_for_status()
            logger.warning(
                "%s failed: %s (RequestId: %s)", action, e.code, e.request_id
            )
            raise

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> TencentCloudClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
