import time
import unittest

from newsdesk.tools.throttle import DomainThrottler


class TestDomainThrottler(unittest.IsolatedAsyncioTestCase):
    async def test_first_request_does_not_wait(self):
        throttler = DomainThrottler(min_interval_ms=200)
        waited = await throttler.before_request("example.com")
        self.assertEqual(waited, 0.0)
        self.assertIsNotNone(throttler.last_request_at("example.com"))

    async def test_second_request_to_same_domain_waits(self):
        throttler = DomainThrottler(min_interval_ms=50)
        await throttler.before_request("example.com")
        started = time.monotonic()
        waited = await throttler.before_request("example.com")
        self.assertGreater(waited, 0.0)
        self.assertGreaterEqual(time.monotonic() - started, 0.03)

    async def test_other_domains_are_not_blocked(self):
        throttler = DomainThrottler(min_interval_ms=5000)
        await throttler.before_request("a.example.com")
        waited = await throttler.before_request("b.example.com")
        self.assertEqual(waited, 0.0)

    async def test_zero_interval_never_waits(self):
        throttler = DomainThrottler(min_interval_ms=0)
        for _ in range(3):
            self.assertEqual(await throttler.before_request("example.com"), 0.0)

    async def test_reset_forgets_history(self):
        throttler = DomainThrottler(min_interval_ms=5000)
        await throttler.before_request("example.com")
        throttler.reset()
        self.assertIsNone(throttler.last_request_at("example.com"))
        self.assertEqual(await throttler.before_request("example.com"), 0.0)


if __name__ == "__main__":
    unittest.main()
