# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across multiple test modules."""

from collections.abc import Iterator

import pytest

from tc3sign.config import Credentials, EndpointConfig
from tc3sign.dotenv_loader import reset_dotenv_state
from tc3sign.logging import SecretFilter
from tests.vectors import (
    REAL_HOST,
    REAL_SECRET_ID,
    REAL_SECRET_KEY,
    REAL_SERVICE,
)


@pytest.fixture(autouse=True)
def _isolated_state() -> Iterator[None]:
    """Reset module-level redaction and dotenv state around each test."""
    SecretFilter.clear_secrets()
    reset_dotenv_state()
    yield
    SecretFilter.clear_secrets()
    reset_dotenv_state()


@pytest.fixture
def credentials() -> Credentials:
    """Credentials matching the fixed test vectors."""
    return Credentials(secret_id=REAL_SECRET_ID, secret_key=REAL_SECRET_KEY)


@pytest.fixture
def endpoint() -> EndpointConfig:
    """The aiart endpoint used by the test vectors."""
    return EndpointConfig(
        service=REAL_SERVICE,
        host=REAL_HOST,
        version="2022-12-29",
        region="ap-guangzhou",
    )
