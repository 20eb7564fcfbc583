"""Global test fixtures."""

import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment from leaking into Config."""
    for name in list(os.environ):
        if name.startswith("REGSYNC_") or name.startswith("DEFAULT_REGISTRY_"):
            monkeypatch.delenv(name, raising=False)
