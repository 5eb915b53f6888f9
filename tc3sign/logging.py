# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Log redaction for API credentials.

Modules log through ``logging.getLogger(__name__)`` and never install
handlers.  An application embedding tc3sign calls
:func:`configure_logging` once; the handler it installs carries a
:class:`SecretFilter`, which replaces every secret key and session token
registered by :class:`~tc3sign.config.Credentials` with ``[REDACTED]``.
"""

import logging
import re
from typing import ClassVar


_REDACTED = "[REDACTED]"

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class SecretFilter(logging.Filter):
    """Replace registered credentials in records passing a handler.

    The registry is shared by all instances, so a key registered after
    the handler was installed is still redacted.
    """

    _secrets: ClassVar[set[str]] = set()
    _pattern: ClassVar[re.Pattern[str] | None] = None

    def filter(self, record: logging.LogRecord) -> bool:
        pattern = self._pattern
        if pattern is None:
            return True
        record.msg = pattern.sub(_REDACTED, str(record.msg))
        if isinstance(record.args, tuple):
            record.args = tuple(
                pattern.sub(_REDACTED, arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True

    @classmethod
    def register_secret(cls, secret: str) -> None:
        """Add a value to redact.  Empty values are ignored."""
        if not secret or secret in cls._secrets:
            return
        cls._secrets.add(secret)
        cls._compile()

    @classmethod
    def clear_secrets(cls) -> None:
        cls._secrets.clear()
        cls._pattern = None

    @classmethod
    def _compile(cls) -> None:
        if not cls._secrets:
            cls._pattern = None
            return
        # Longest first, so a key that contains another key is replaced whole
        alternatives = sorted(cls._secrets, key=len, reverse=True)
        cls._pattern = re.compile("|".join(map(re.escape, alternatives)))


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    add_secret_filter: bool = True,
) -> None:
    """Install a single redacting stream handler on the root logger.

    Handlers already on the root logger are removed first, so calling
    this twice does not duplicate output.

    Args:
        level: Root logger level.
        format_string: Record format; a timestamped default when None.
        add_secret_filter: Attach :class:`SecretFilter` to the handler.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string or _DEFAULT_FORMAT))
    if add_secret_filter:
        handler.addFilter(SecretFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
