import unittest
from datetime import datetime, timezone

from newsdesk.tools.anchor_scanner import AnchorScanner, build_search_urls


SEARCH_PAGE = """
<html>
  <body>
    <nav><a href="/">Home</a></nav>
    <ul class="results">
      <li><a href="/news/flood-closes-main-street">Flood closes <b>Main Street</b> &amp; bridge</a></li>
      <li>
        <a href="https://other.example.org/story">
          <img data-src="/img/lazy.jpg" alt="" />
          Storm knocks out power
        </a>
      </li>
      <li><a href="mailto:desk@example.com">Email the desk</a></li>
      <li><a href="javascript:void(0)">Load more</a></li>
      <li><a href="/gallery"><img src="/img/only.jpg" /></a></li>
    </ul>
  </body>
</html>
"""


class TestAnchorScanner(unittest.TestCase):
    def setUp(self):
        self.fetched_at = datetime(2025, 6, 10, 12, 0, tzinfo=timezone.utc)
        self.candidates = AnchorScanner().extract(SEARCH_PAGE, "example.com", fetched_at=self.fetched_at)

    def test_http_anchors_with_text_are_harvested(self):
        urls = [c.url for c in self.candidates]
        self.assertEqual(urls, [
            "https://example.com/",
            "https://example.com/news/flood-closes-main-street",
            "https://other.example.org/story",
        ])

    def test_title_is_clean_text_and_doubles_as_summary(self):
        flood = self.candidates[1]
        self.assertEqual(flood.title, "Flood closes Main Street & bridge")
        self.assertEqual(flood.summary, flood.title)
        self.assertIsNone(flood.image_url)

    def test_lazy_image_is_resolved(self):
        storm = self.candidates[2]
        self.assertEqual(storm.title, "Storm knocks out power")
        self.assertEqual(storm.image_url, "https://example.com/img/lazy.jpg")

    def test_items_are_stamped_with_fetch_time(self):
        self.assertTrue(all(c.published_at == self.fetched_at for c in self.candidates))

    def test_empty_page(self):
        self.assertEqual(AnchorScanner().extract("", "example.com"), [])

    def test_entities_are_decoded_once(self):
        page = '<a href="/markup">Why &amp;lt;br&amp;gt; tags break AT&amp;amp;T pages</a>'
        candidates = AnchorScanner().extract(page, "example.com", fetched_at=self.fetched_at)
        self.assertEqual(candidates[0].title, "Why &lt;br&gt; tags break AT&amp;T pages")


class TestBuildSearchUrls(unittest.TestCase):
    def test_templates_times_first_three_terms(self):
        urls = build_search_urls("example.com", ["flood", "power outage", "storm", "ignored"])
        self.assertEqual(urls, [
            "https://example.com/search?q=flood",
            "https://example.com/search?q=power+outage",
            "https://example.com/search?q=storm",
            "https://example.com/?s=flood",
            "https://example.com/?s=power+outage",
            "https://example.com/?s=storm",
        ])

    def test_no_terms_no_urls(self):
        self.assertEqual(build_search_urls("example.com", []), [])


if __name__ == "__main__":
    unittest.main()
