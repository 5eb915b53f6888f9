# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Idempotent .env loading for Tencent Cloud credentials.

Credentials are usually provided as ``TENCENTCLOUD_SECRET_ID`` and
``TENCENTCLOUD_SECRET_KEY``.  The loader reads them from two locations
(in order):

1. ``~/.config/tc3sign/.env`` (XDG config directory)
2. ``.env`` in the current working directory

Variables that are already set (by the process environment or by the
first file) are **not** overwritten by later files.
"""

import logging
from pathlib import Path


logger = logging.getLogger(__name__)

_dotenv_loaded = False


def load_dotenv_once() -> None:
    """Load .env files once, if not already loaded.

    Calling it again after the first load has no effect.
    """
    global _dotenv_loaded
    if _dotenv_loaded:
        return

    from dotenv import load_dotenv

    from tc3sign.config import get_dotenv_path

    xdg_env = get_dotenv_path()
    if xdg_env.exists():
        load_dotenv(xdg_env)
        logger.debug("Loaded .env from %s", xdg_env)

    cwd_env = Path.cwd() / ".env"
    if cwd_env.exists():
        load_dotenv(cwd_env)
        logger.debug("Loaded .env from %s", cwd_env)

    _dotenv_loaded = True


def reset_dotenv_state() -> None:
    """Reset the dotenv loaded state. For testing only."""
    global _dotenv_loaded
    _dotenv_loaded = False
