import unittest

import httpx

from newsdesk.tools.fetcher import ResilientFetcher
from newsdesk.tools.robots import RobotsGate, RobotsRules, parse_robots
from newsdesk.tools.throttle import DomainThrottler


ROBOTS_TXT = """
# sample policy
User-agent: *
Disallow: /private
Allow: /private/public
Disallow:

User-agent: newsdesk
User-agent: otherbot
Disallow: /rss
"""


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def make_gate(handler, clock=None, ttl_seconds=3600, max_entries=200):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = ResilientFetcher(
        DomainThrottler(min_interval_ms=0), client=client, max_retries=0, retry_delay_ms=0,
    )
    gate = RobotsGate(
        fetcher,
        ttl_seconds=ttl_seconds,
        max_entries=max_entries,
        agent_name="newsdesk",
        clock=clock or FakeClock(),
    )
    return gate, client


class TestParseRobots(unittest.TestCase):
    def test_wildcard_group_applies_to_unknown_agents(self):
        rules = parse_robots(ROBOTS_TXT, "somebot")
        self.assertFalse(rules.is_allowed("/private/report"))
        self.assertTrue(rules.is_allowed("/private/public/page"))
        self.assertTrue(rules.is_allowed("/rss"))

    def test_named_group_replaces_wildcard_group(self):
        rules = parse_robots(ROBOTS_TXT, "newsdesk")
        self.assertFalse(rules.is_allowed("/rss"))
        self.assertTrue(rules.is_allowed("/private/report"))

    def test_consecutive_user_agent_lines_share_a_group(self):
        rules = parse_robots(ROBOTS_TXT, "OtherBot")
        self.assertEqual(rules.disallow, ("/rss",))

    def test_empty_disallow_is_ignored(self):
        rules = parse_robots("User-agent: *\nDisallow:\n", "newsdesk")
        self.assertEqual(rules, RobotsRules())
        self.assertTrue(rules.is_allowed("/anything"))

    def test_wildcards_are_stripped(self):
        rules = parse_robots("User-agent: *\nDisallow: /search*\n", "newsdesk")
        self.assertEqual(rules.disallow, ("/search",))
        self.assertFalse(rules.is_allowed("/search?q=flood"))

    def test_longest_prefix_wins(self):
        rules = RobotsRules(allow=("/news",), disallow=("/news/archive",))
        self.assertTrue(rules.is_allowed("/news/today"))
        self.assertFalse(rules.is_allowed("/news/archive/2020"))

    def test_equal_length_allow_wins(self):
        rules = RobotsRules(allow=("/feed",), disallow=("/feed",))
        self.assertTrue(rules.is_allowed("/feed"))

    def test_query_string_is_matched(self):
        rules = parse_robots("User-agent: *\nDisallow: /?s=\n", "newsdesk")
        self.assertFalse(rules.is_allowed("/?s=flood"))
        self.assertTrue(rules.is_allowed("/"))


class TestRobotsGate(unittest.IsolatedAsyncioTestCase):
    async def test_rules_are_fetched_once_and_cached(self):
        calls = []

        def handler(request):
            calls.append(str(request.url))
            return httpx.Response(200, text="User-agent: *\nDisallow: /rss\n")

        gate, client = make_gate(handler)
        self.assertFalse(await gate.is_path_allowed("example.com", "/rss"))
        self.assertTrue(await gate.is_path_allowed("example.com", "/feed"))
        await client.aclose()

        self.assertEqual(calls, ["https://example.com/robots.txt"])

    async def test_missing_robots_allows_and_is_cached(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        gate, client = make_gate(handler)
        self.assertTrue(await gate.is_path_allowed("example.com", "/rss"))
        self.assertTrue(await gate.is_path_allowed("example.com", "/feed"))
        await client.aclose()

        self.assertEqual(len(calls), 1)

    async def test_network_failure_allows_without_caching(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectTimeout("timed out", request=request)

        gate, client = make_gate(handler)
        self.assertTrue(await gate.is_path_allowed("example.com", "/rss"))
        self.assertTrue(await gate.is_path_allowed("example.com", "/rss"))
        await client.aclose()

        self.assertEqual(len(calls), 2)

    async def test_expired_rules_are_refetched(self):
        bodies = ["User-agent: *\nDisallow: /rss\n", "User-agent: *\nDisallow:\n"]
        clock = FakeClock()

        def handler(request):
            return httpx.Response(200, text=bodies.pop(0))

        gate, client = make_gate(handler, clock=clock, ttl_seconds=60)
        self.assertFalse(await gate.is_path_allowed("example.com", "/rss"))
        clock.now += 30
        self.assertFalse(await gate.is_path_allowed("example.com", "/rss"))
        clock.now += 31
        self.assertTrue(await gate.is_path_allowed("example.com", "/rss"))
        await client.aclose()

    async def test_cache_is_bounded_and_clearable(self):
        calls = []

        def handler(request):
            calls.append(request.url.host)
            return httpx.Response(404)

        gate, client = make_gate(handler, max_entries=2)
        for host in ("a.com", "b.com", "c.com"):
            await gate.is_path_allowed(host, "/")
        # a.com was evicted, b.com and c.com are still cached
        await gate.is_path_allowed("c.com", "/")
        await gate.is_path_allowed("a.com", "/")
        self.assertEqual(calls, ["a.com", "b.com", "c.com", "a.com"])

        gate.clear()
        await gate.is_path_allowed("c.com", "/")
        await client.aclose()
        self.assertEqual(calls[-1], "c.com")
        self.assertEqual(len(calls), 5)


if __name__ == "__main__":
    unittest.main()
