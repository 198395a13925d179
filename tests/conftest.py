import pytest

from reactivity import reset_runtime


@pytest.fixture(autouse=True)
def runtime():
    """Every test gets a fresh runtime."""
    rt = reset_runtime()
    yield rt
    rt.dispose()
