import pytest
from apps.scanner.services import registry


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def empty_registry():
    """Sessions are process-local; start every test without any."""
    registry.clear()
    yield
    registry.clear()


@pytest.fixture(autouse=True)
def debounce_window(settings):
    settings.SCANNER_DEBOUNCE_SECONDS = 1.5
