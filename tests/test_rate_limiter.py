from services.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_up_to_rate_per_window():
    clock = FakeClock()
    limiter = RateLimiter(rate=3, window=60, clock=clock)

    assert [limiter.allow("1.2.3.4") for _ in range(4)] == [True, True, True, False]
    # other clients have their own budget
    assert limiter.allow("5.6.7.8") is True


def test_budget_resets_after_window():
    clock = FakeClock()
    limiter = RateLimiter(rate=1, window=60, clock=clock)

    assert limiter.allow("c") is True
    clock.now += 60
    assert limiter.allow("c") is False
    clock.now += 1
    assert limiter.allow("c") is True


def test_sweep_evicts_idle_clients():
    clock = FakeClock()
    limiter = RateLimiter(rate=5, window=60, clock=clock)
    limiter.allow("old")
    clock.now += 100
    limiter.allow("recent")
    clock.now += 30

    assert limiter.sweep() == 1
    assert len(limiter) == 1
    assert limiter.allow("recent") is True
