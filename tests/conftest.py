"""Shared test fixtures."""

from __future__ import annotations

import pytest

from patternguard import PatternGuard
from patternguard.profile import default_registry, load_builtin


@pytest.fixture(scope="session")
def registry():
    return default_registry()


@pytest.fixture
def guard(registry):
    return PatternGuard(registry)


@pytest.fixture(scope="session")
def swift():
    return load_builtin("swift")


@pytest.fixture(scope="session")
def rust():
    return load_builtin("rust")


@pytest.fixture(scope="session")
def powershell():
    return load_builtin("powershell")


@pytest.fixture(scope="session")
def sql():
    return load_builtin("sql")
