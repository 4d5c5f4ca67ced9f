"""Root conftest for test suite - path setup, markers and shared fixtures."""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add repository root (for tests.mocks) and src (for workforce_lu) to Python path
repo_root = Path(__file__).parent.parent
for path in (repo_root, repo_root / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from tests.mocks.fakes import FakeClock, FakeCompletionService, FakeSource  # noqa: E402
from tests.mocks.samples import GUICHET_RESULT, LEGAL_RESULT  # noqa: E402
from workforce_lu.retrieval.adapter import RetrievalAdapter  # noqa: E402
from workforce_lu.types.evidence import SourceTag  # noqa: E402
from workforce_lu.utils.cache import InMemoryCacheStore  # noqa: E402

# Test directories and the marker every test inside them gets
DIRECTORY_MARKERS = {
    "unit": pytest.mark.unit,
    "graph": pytest.mark.unit,
    "llm": pytest.mark.unit,
    "integration": pytest.mark.integration,
    "e2e": pytest.mark.e2e,
}


def pytest_collection_modifyitems(items):
    """Mark tests by the directory they live in."""
    tests_dir = Path(__file__).parent
    for item in items:
        try:
            top = Path(item.fspath).relative_to(tests_dir).parts[0]
        except ValueError:
            continue
        marker = DIRECTORY_MARKERS.get(top)
        if marker is not None:
            item.add_marker(marker)


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Controllable time source starting at a fixed instant."""
    return FakeClock(datetime(2025, 3, 14, 9, 0, 0))


@pytest.fixture
def memory_cache(clock: FakeClock) -> InMemoryCacheStore:
    """Fresh in-memory cache with the default 24h TTL, driven by `clock`."""
    return InMemoryCacheStore(ttl_hours=24, clock=clock)


@pytest.fixture
def guichet_source() -> FakeSource:
    return FakeSource(SourceTag.GUICHET, results=[GUICHET_RESULT])


@pytest.fixture
def legal_source() -> FakeSource:
    return FakeSource(SourceTag.LEGAL, results=[LEGAL_RESULT])


@pytest.fixture
def adapter(guichet_source, legal_source, memory_cache, clock) -> RetrievalAdapter:
    """Retrieval adapter over fake sources and an isolated cache."""
    return RetrievalAdapter(
        sources={SourceTag.GUICHET: guichet_source, SourceTag.LEGAL: legal_source},
        cache=memory_cache,
        clock=clock,
    )


@pytest.fixture
def completion() -> FakeCompletionService:
    """Completion service with no scripted replies (every call fails)."""
    return FakeCompletionService()
