from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


# Settings are instantiated at import time; keep tests offline and quiet.
os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "warning")
os.environ.setdefault("UPSTREAM_BASE_URL", "http://upstream.test/v2")

# Ensure the repo root is importable (so `import services.*` works in tests).
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture()
def upstream():
    from tests.upstream_stub import UpstreamStub

    return UpstreamStub()


@pytest.fixture()
def client(upstream):
    from services.reservations.app.upstream import UpstreamClient

    return UpstreamClient(transport=upstream.transport)


@pytest.fixture()
def orchestrator(client):
    from services.reservations.app.orchestrator import SearchOrchestrator

    return SearchOrchestrator(client=client)
