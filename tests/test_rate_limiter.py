import pytest

from app import rate_limiter


@pytest.fixture(autouse=True)
def _fresh_counters():
    rate_limiter.memory_cache.clear()
    yield
    rate_limiter.memory_cache.clear()


def test_allows_up_to_limit_then_blocks():
    results = [rate_limiter.check_rate_limit("test:ip", 3, 60, None) for _ in range(4)]

    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert results[2][1] == 3
    assert 0 < results[3][2] <= 60


def test_keys_are_counted_separately():
    for _ in range(2):
        rate_limiter.check_rate_limit("test:a", 2, 60, None)

    assert rate_limiter.check_rate_limit("test:a", 2, 60, None)[0] is False
    assert rate_limiter.check_rate_limit("test:b", 2, 60, None)[0] is True
