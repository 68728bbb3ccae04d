import pytest


@pytest.fixture
def anyio_backend() -> str:
    # The service is built on asyncio primitives (call_later, get_running_loop).
    return "asyncio"
