"""Shared fixtures for deprefresh tests."""

import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"
