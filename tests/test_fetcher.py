import unittest

import httpx

from newsdesk.tools.fetcher import FetchError, ResilientFetcher
from newsdesk.tools.throttle import DomainThrottler


def make_fetcher(handler, max_retries=0):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = ResilientFetcher(
        DomainThrottler(min_interval_ms=0),
        client=client,
        max_retries=max_retries,
        retry_delay_ms=0,
        timeout_seconds=5,
        user_agent="newsdesk-test/1.0",
    )
    return fetcher, client


class TestResilientFetcher(unittest.IsolatedAsyncioTestCase):
    async def test_success_sends_identifying_headers(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text="ok")

        fetcher, client = make_fetcher(handler)
        response = await fetcher.fetch("example.com", "https://example.com/rss")
        await client.aclose()

        self.assertEqual(response.text, "ok")
        self.assertEqual(seen[0].headers["User-Agent"], "newsdesk-test/1.0")
        self.assertIn("application/xml", seen[0].headers["Accept"])
        self.assertIn("text/html", seen[0].headers["Accept"])

    async def test_retries_until_success(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(500)
            return httpx.Response(200, text="finally")

        fetcher, client = make_fetcher(handler, max_retries=2)
        response = await fetcher.fetch("example.com", "https://example.com/rss")
        await client.aclose()

        self.assertEqual(response.text, "finally")
        self.assertEqual(len(calls), 3)

    async def test_raises_last_error_after_exhausting_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        fetcher, client = make_fetcher(handler, max_retries=1)
        with self.assertRaises(FetchError) as ctx:
            await fetcher.fetch("example.com", "https://example.com/rss")
        await client.aclose()

        self.assertEqual(len(calls), 2)
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(ctx.exception.attempts, 2)
        self.assertEqual(ctx.exception.url, "https://example.com/rss")

    async def test_transport_error_becomes_fetch_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher, client = make_fetcher(handler)
        with self.assertRaises(FetchError) as ctx:
            await fetcher.fetch("example.com", "https://example.com/rss")
        await client.aclose()

        self.assertIsNone(ctx.exception.status_code)
        self.assertIn("ConnectError", str(ctx.exception))

    async def test_per_call_retry_override(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        fetcher, client = make_fetcher(handler, max_retries=2)
        with self.assertRaises(FetchError):
            await fetcher.fetch("example.com", "https://example.com/robots.txt", max_retries=0)
        await client.aclose()

        self.assertEqual(len(calls), 1)

    async def test_redirect_hops_are_throttled_under_their_own_host(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            if request.url.host == "example.com":
                return httpx.Response(301, headers={"Location": "https://cdn.example.net/rss"})
            return httpx.Response(200, text="moved")

        fetcher, client = make_fetcher(handler)
        response = await fetcher.fetch("example.com", "https://example.com/rss")
        await client.aclose()

        self.assertEqual(response.text, "moved")
        self.assertEqual(seen, ["https://example.com/rss", "https://cdn.example.net/rss"])
        self.assertIsNotNone(fetcher.throttler.last_request_at("cdn.example.net"))

    async def test_refused_redirect_is_never_requested(self):
        seen = []
        checked = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(302, headers={"Location": "/private/rss"})

        async def is_allowed(domain, path):
            checked.append((domain, path))
            return not path.startswith("/private")

        fetcher, client = make_fetcher(handler, max_retries=2)
        with self.assertRaises(FetchError) as ctx:
            await fetcher.fetch("example.com", "https://example.com/rss", is_allowed=is_allowed)
        await client.aclose()

        self.assertEqual(seen, ["https://example.com/rss"])
        self.assertEqual(checked, [("example.com", "/private/rss")])
        self.assertEqual(ctx.exception.status_code, 302)

    async def test_redirect_loop_is_bounded(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(301, headers={"Location": "https://example.com/rss"})

        fetcher, client = make_fetcher(handler)
        fetcher.max_redirects = 2
        with self.assertRaises(FetchError):
            await fetcher.fetch("example.com", "https://example.com/rss")
        await client.aclose()

        self.assertEqual(len(seen), 3)

    async def test_aclose_leaves_injected_client_open(self):
        fetcher, client = make_fetcher(lambda request: httpx.Response(200))
        await fetcher.aclose()
        self.assertFalse(client.is_closed)
        await client.aclose()


if __name__ == "__main__":
    unittest.main()
