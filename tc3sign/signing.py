# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""TC3-HMAC-SHA256 request signing.

Implements the signature used by Tencent Cloud API 3.0 style endpoints:

1. Canonical request: method, URI, query, signed headers and the
   SHA-256 of the exact body bytes, in a fixed newline-joined layout.
2. String to sign: algorithm, timestamp, credential scope
   (``<date>/<service>/tc3_request``) and the hash of the canonical
   request.
3. Signing key: ``"TC3" + secret_key`` narrowed by three chained
   HMAC-SHA256 operations over date, service and ``tc3_request``.
4. Signature: HMAC-SHA256 of the string to sign, hex-encoded, placed in
   the ``Authorization`` header together with the credential scope and
   signed header list.

Every function is pure.  The credential date is always derived from the
request timestamp, so the two cannot drift apart across a UTC midnight.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import urllib.parse
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from tc3sign.config import Credentials


ALGORITHM = "TC3-HMAC-SHA256"

#: Fixed terminator of the credential scope and last key derivation step.
TERMINATOR = "tc3_request"

_KEY_PREFIX = "TC3"

# encodeURIComponent leaves these unescaped
_UNRESERVED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.!~*'()"
)

_AUTH_HEADER_RE = re.compile(
    r"TC3-HMAC-SHA256\s+"
    r"Credential=(?P<secret_id>[^/]+)/(?P<scope>[^,]+),\s*"
    r"SignedHeaders=(?P<signed_headers>[^,]+),\s*"
    r"Signature=(?P<signature>[0-9a-f]{64})$"
)


class SigningError(ValueError):
    """Signing input cannot be canonicalized."""


# ---------------------------------------------------------------------------
# Parsed authorization header
# ---------------------------------------------------------------------------


class ParsedAuthorization:
    """Parsed TC3 Authorization header."""

    __slots__ = ("secret_id", "scope", "signed_headers", "signature")

    def __init__(
        self,
        secret_id: str,
        scope: str,
        signed_headers: str,
        signature: str,
    ) -> None:
        self.secret_id = secret_id
        self.scope = scope
        self.signed_headers = signed_headers
        self.signature = signature

    @property
    def scope_parts(self) -> list[str]:
        """Split scope into date/service/tc3_request."""
        return self.scope.split("/")

    @property
    def date(self) -> str:
        """Date from credential scope (YYYY-MM-DD)."""
        return self.scope_parts[0]

    @property
    def service(self) -> str:
        """Service name from credential scope."""
        parts = self.scope_parts
        return parts[1] if len(parts) >= 3 else ""


def parse_authorization_header(value: str) -> ParsedAuthorization | None:
    """Parse a TC3 Authorization header.

    Args:
        value: Full Authorization header value.

    Returns:
        ParsedAuthorization if the value is a TC3 header, None otherwise.
    """
    m = _AUTH_HEADER_RE.match(value)
    if not m:
        return None
    return ParsedAuthorization(
        secret_id=m.group("secret_id"),
        scope=m.group("scope"),
        signed_headers=m.group("signed_headers"),
        signature=m.group("signature"),
    )


# ---------------------------------------------------------------------------
# Canonical request construction
# ---------------------------------------------------------------------------


def _uri_encode(value: str) -> str:
    """Percent-encode a value the way ``encodeURIComponent`` does.

    Characters outside the unreserved set are encoded as UTF-8 bytes,
    each written as ``%XX`` with upper-case hex.

    Raises:
        SigningError: If the value is not encodable as UTF-8.
    """
    result: list[str] = []
    for ch in value:
        if ch in _UNRESERVED:
            result.append(ch)
            continue
        try:
            encoded = ch.encode("utf-8")
        except UnicodeEncodeError as e:
            raise SigningError(f"Cannot encode {ch!r} as UTF-8") from e
        result.extend(f"%{b:02X}" for b in encoded)
    return "".join(result)


def canonical_uri(path: str) -> str:
    """Build the canonical URI: encode the path, keep ``/`` literal.

    Args:
        path: Request path.  An empty path means ``/``.

    Returns:
        Encoded path.
    """
    if not path:
        return "/"
    return _uri_encode(path).replace("%2F", "/")


def canonical_query_string(query: str) -> str:
    """Build the canonical query string.

    Pairs are parsed with form semantics (``+`` is a space), sorted by
    name (pairs sharing a name keep their order), then re-encoded.
    Empty pieces between separators (``a=1&&b=2``, a trailing ``&``)
    are skipped.

    Args:
        query: Raw query string, with or without a leading ``?``.

    Returns:
        Canonical query string, empty for an empty query.

    Raises:
        SigningError: If the query string is malformed.
    """
    query = "&".join(p for p in query.removeprefix("?").split("&") if p)
    if not query:
        return ""

    try:
        params = urllib.parse.parse_qsl(
            query,
            keep_blank_values=True,
            strict_parsing=True,
            errors="strict",
        )
    except (ValueError, UnicodeDecodeError) as e:
        raise SigningError(f"Malformed query string: {query!r}") from e

    params.sort(key=lambda kv: kv[0])
    return "&".join(f"{_uri_encode(k)}={_uri_encode(v)}" for k, v in params)


def _normalize_header_names(names: Iterable[str]) -> list[str]:
    """Lower-case, de-duplicate and sort header names."""
    normalized = sorted({name.strip().lower() for name in names})
    if not normalized or "" in normalized:
        raise SigningError("Signed header names must be non-empty")
    return normalized


def canonical_headers_string(
    headers: Mapping[str, str], signed_header_names: Iterable[str]
) -> str:
    """Build the canonical headers block.

    Args:
        headers: Request headers (any case).
        signed_header_names: Names of the headers to sign (any case).

    Returns:
        ``name:value`` lines sorted by lower-case name, each ending in a
        newline.  Values are trimmed with inner whitespace collapsed.

    Raises:
        SigningError: If a signed header is missing from ``headers``.
    """
    lower_headers = {name.lower(): value for name, value in headers.items()}

    lines: list[str] = []
    for name in _normalize_header_names(signed_header_names):
        if name not in lower_headers:
            raise SigningError(f"Signed header '{name}' is not in the request")
        value = " ".join(str(lower_headers[name]).split())
        lines.append(f"{name}:{value}\n")
    return "".join(lines)


def signed_headers_string(signed_header_names: Iterable[str]) -> str:
    """Build the ``SignedHeaders`` list (``content-type;host``)."""
    return ";".join(_normalize_header_names(signed_header_names))


def hash_payload(payload: bytes | str) -> str:
    """SHA-256 of the exact body bytes, lower-case hex.

    Raises:
        SigningError: If a str payload is not encodable as UTF-8.
    """
    if isinstance(payload, str):
        try:
            payload = payload.encode("utf-8")
        except UnicodeEncodeError as e:
            raise SigningError("Payload is not valid UTF-8 text") from e
    return hashlib.sha256(payload).hexdigest()


def build_canonical_request(
    method: str,
    path: str,
    query: str,
    headers: Mapping[str, str],
    signed_header_names: Iterable[str],
    payload: bytes | str,
) -> str:
    """Build the canonical request string.

    The layout is::

        METHOD
        CANONICAL_URI
        CANONICAL_QUERY
        name:value        (one line per signed header)
                          (empty line: the header block ends in a newline)
        SIGNED_HEADERS
        HASHED_PAYLOAD

    Args:
        method: HTTP method (upper-cased here).
        path: Request path.
        query: Query string (without or with leading ``?``).
        headers: Request headers.
        signed_header_names: Header names to sign.
        payload: Exact body bytes (or text, encoded as UTF-8).

    Returns:
        Canonical request string.
    """
    names = list(signed_header_names)
    return "\n".join(
        [
            method.upper(),
            canonical_uri(path),
            canonical_query_string(query),
            canonical_headers_string(headers, names),
            signed_headers_string(names),
            hash_payload(payload),
        ]
    )


# ---------------------------------------------------------------------------
# String to sign
# ---------------------------------------------------------------------------


def _check_timestamp(timestamp: int) -> None:
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise SigningError(
            f"Timestamp must be integer Unix seconds: {timestamp!r}"
        )
    if timestamp < 0:
        raise SigningError(f"Timestamp must not be negative: {timestamp}")


def credential_date(timestamp: int) -> str:
    """UTC calendar date (YYYY-MM-DD) of a Unix timestamp."""
    _check_timestamp(timestamp)
    try:
        moment = datetime.fromtimestamp(timestamp, UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise SigningError(f"Timestamp out of range: {timestamp}") from e
    return moment.strftime("%Y-%m-%d")


def credential_scope(timestamp: int, service: str) -> str:
    """Build the credential scope ``<date>/<service>/tc3_request``."""
    if not service:
        raise SigningError("Service name must not be empty")
    return f"{credential_date(timestamp)}/{service}/{TERMINATOR}"


def build_string_to_sign(
    timestamp: int, service: str, canonical_request: str
) -> str:
    """Build the TC3 string to sign.

    Args:
        timestamp: Unix seconds; also the source of the scope date.
        service: Service name (e.g. ``aiart``).
        canonical_request: Output of :func:`build_canonical_request`.

    Returns:
        String to sign.
    """
    return "\n".join(
        [
            ALGORITHM,
            str(timestamp),
            credential_scope(timestamp, service),
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ]
    )


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, date: str, service: str) -> bytes:
    """Derive the per-day, per-service signing key.

    Args:
        secret_key: Long-term secret key.
        date: Credential date (YYYY-MM-DD).
        service: Service name.

    Returns:
        32 raw key bytes.
    """
    k_date = _hmac_sha256((_KEY_PREFIX + secret_key).encode("utf-8"), date)
    k_service = _hmac_sha256(k_date, service)
    k_signing = _hmac_sha256(k_service, TERMINATOR)
    return k_signing


def sign(signing_key: bytes, string_to_sign: str) -> str:
    """Compute the hex-encoded TC3 signature."""
    return hmac.new(
        signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def format_authorization(
    secret_id: str, scope: str, signed_headers: str, signature: str
) -> str:
    """Format the ``Authorization`` header value."""
    return (
        f"{ALGORITHM} "
        f"Credential={secret_id}/{scope}, "
        f"SignedHeaders={signed_headers}, "
        f"Signature={signature}"
    )


class SignResult:
    """Result of signing one request."""

    __slots__ = (
        "authorization",
        "timestamp",
        "date",
        "credential_scope",
        "signed_headers",
        "canonical_request",
        "string_to_sign",
        "signature",
    )

    def __init__(
        self,
        *,
        authorization: str,
        timestamp: int,
        date: str,
        credential_scope: str,
        signed_headers: str,
        canonical_request: str,
        string_to_sign: str,
        signature: str,
    ) -> None:
        self.authorization = authorization
        self.timestamp = timestamp
        self.date = date
        self.credential_scope = credential_scope
        self.signed_headers = signed_headers
        self.canonical_request = canonical_request
        self.string_to_sign = string_to_sign
        self.signature = signature


def sign_request(
    *,
    credentials: Credentials,
    service: str,
    timestamp: int,
    method: str,
    path: str,
    query: str,
    headers: Mapping[str, str],
    signed_header_names: Iterable[str],
    payload: bytes | str,
) -> SignResult:
    """Sign a request with TC3-HMAC-SHA256.

    The signing key is derived fresh on every call.

    Args:
        credentials: Secret id and key.
        service: Service name for the credential scope.
        timestamp: Unix seconds.  The credential date is derived from it
            and it must be the value sent as ``X-TC-Timestamp``.
        method: HTTP method.
        path: Request path.
        query: Query string.
        headers: Request headers, including every signed header.
        signed_header_names: Header names to sign.
        payload: Exact body bytes that will be transmitted.

    Returns:
        SignResult with the Authorization header and the intermediate
        strings.

    Raises:
        SigningError: If any input cannot be canonicalized.
    """
    names = list(signed_header_names)
    creq = build_canonical_request(method, path, query, headers, names, payload)
    string_to_sign = build_string_to_sign(timestamp, service, creq)

    date = credential_date(timestamp)
    scope = credential_scope(timestamp, service)
    signing_key = derive_signing_key(credentials.secret_key, date, service)
    signature = sign(signing_key, string_to_sign)
    signed_headers = signed_headers_string(names)

    return SignResult(
        authorization=format_authorization(
            credentials.secret_id, scope, signed_headers, signature
        ),
        timestamp=timestamp,
        date=date,
        credential_scope=scope,
        signed_headers=signed_headers,
        canonical_request=creq,
        string_to_sign=string_to_sign,
        signature=signature,
    )
