import os
import pathlib
import sys
import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import ttlmemo`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def _env_flag(name: str) -> bool:
    v = (os.environ.get(name) or '').strip().lower()
    return v in {'1', 'true', 'yes', 'y', 'on'}


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: timing-sensitive concurrency tests (skipped unless TTLMEMO_RUN_SLOW=1)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_slow = _env_flag('TTLMEMO_RUN_SLOW')

    for item in items:
        if 'slow' in item.keywords and not run_slow:
            item.add_marker(pytest.mark.skip(reason='slow tests skipped; set TTLMEMO_RUN_SLOW=1 to enable'))


class FakeClock:
    """Manually advanced clock for deterministic expiry."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock):
    from ttlmemo.store import CacheStore

    return CacheStore(clock=clock)


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Each test starts from default configuration with no TTLMEMO_* overrides."""
    from ttlmemo.config import get_config_manager

    for name in list(os.environ):
        if name.startswith("TTLMEMO_") and name != "TTLMEMO_RUN_SLOW":
            monkeypatch.delenv(name, raising=False)
    get_config_manager().reset()
    yield
    get_config_manager().reset()
