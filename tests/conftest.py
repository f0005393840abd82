import pytest

from solhistory.infra.retry import RetryPolicy


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def retry_policy(sleeps) -> RetryPolicy:
    """Retry policy whose waits are recorded instead of slept."""

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return RetryPolicy(enabled=True, max_attempts=4, base_delay=0.5, sleep=fake_sleep)
