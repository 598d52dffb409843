from collections import deque

import pytest

from app.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter


class FakeTime:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_memory_rate_limiter_allows_then_blocks():
    rl = InMemoryRateLimiter()
    key = "k1"
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is False


def test_memory_rate_limiter_window_slides():
    t = FakeTime()
    rl = InMemoryRateLimiter(clock=t)
    assert rl.allow("k", 1, 60) is True
    assert rl.allow("k", 1, 60) is False
    assert rl.remaining("k", 1, 60) == 0
    t.now += 61
    assert rl.remaining("k", 1, 60) == 1
    assert rl.allow("k", 1, 60) is True


def test_memory_rate_limiter_keys_are_independent():
    rl = InMemoryRateLimiter()
    assert rl.allow("a", 1, 60) is True
    assert rl.allow("b", 1, 60) is True


def test_redis_rate_limiter_with_fake():
    pytest.importorskip("redis")
    from app.infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter

    class FakePipe:
        def __init__(self, client):
            self.client = client
            self.ops = []

        def incr(self, k, n):
            self.ops.append(("incr", k, n))
            return self

        def expire(self, k, s, nx=False):
            self.ops.append(("expire", k, s, nx))
            return self

        def execute(self):
            results = []
            for op in self.ops:
                if op[0] == "incr":
                    self.client.store[op[1]] = self.client.store.get(op[1], 0) + op[2]
                    results.append(self.client.store[op[1]])
                else:
                    self.client.ttls.setdefault(op[1], op[2])
                    results.append(True)
            return results

    class FakeRedis:
        def __init__(self):
            self.store = {}
            self.ttls = {}

        def pipeline(self):
            return FakePipe(self)

        def get(self, k):
            return self.store.get(k)

    client = FakeRedis()
    rl = RedisRateLimiter(url="redis://fake", client=client)

    assert rl.allow("k1", 2, 60) is True
    assert rl.remaining("k1", 2, 60) == 1
    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is False
    assert rl.remaining("k1", 2, 60) == 0
    assert client.ttls == {"rl:k1:60": 60}


def test_memory_rate_limiter_drops_expired_keys():
    t = FakeTime()
    rl = InMemoryRateLimiter(clock=t)
    assert rl.allow("ip:10.0.0.1", 5, 60) is True
    assert rl.allow("ip:10.0.0.2", 5, 60) is True
    assert set(rl._hits) == {"ip:10.0.0.1", "ip:10.0.0.2"}

    t.now += 61
    assert rl.remaining("ip:10.0.0.1", 5, 60) == 5
    assert "ip:10.0.0.1" not in rl._hits
    assert rl.allow("ip:10.0.0.2", 5, 60) is True
    assert rl._hits["ip:10.0.0.2"] == deque([t.now])


def test_memory_rate_limiter_remaining_does_not_create_keys():
    rl = InMemoryRateLimiter()
    assert rl.remaining("ip:never-seen", 3, 60) == 3
    assert rl._hits == {}
