import base64
import unittest

from newsdesk.api.cursor import InvalidCursorError, NewsCursor, decode_cursor, encode_cursor
from newsdesk.schemas import GeoContext


class TestNewsCursor(unittest.TestCase):
    def setUp(self):
        self.cursor = NewsCursor(
            topic_filters=["weather-flood", "crime-violent"],
            free_text_query="flood warning",
            since_timestamp=1718000000000,
            page_size=5,
            page_number=2,
            location_context=GeoContext(
                lat=51.5074, lon=-0.1278, display_name="London, UK",
                country_code="GB", admin_levels=["England"],
            ),
        )

    def test_round_trip_is_exact(self):
        self.assertEqual(decode_cursor(encode_cursor(self.cursor)), self.cursor)

    def test_round_trip_without_optional_fields(self):
        bare = NewsCursor(since_timestamp=0, page_size=50)
        decoded = decode_cursor(encode_cursor(bare))
        self.assertEqual(decoded, bare)
        self.assertIsNone(decoded.location_context)
        self.assertEqual(decoded.page_number, 1)

    def test_token_is_url_safe_and_unpadded(self):
        token = encode_cursor(self.cursor)
        self.assertNotIn("=", token)
        self.assertNotIn("+", token)
        self.assertNotIn("/", token)

    def test_wire_keys_are_camel_case(self):
        token = encode_cursor(self.cursor)
        raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4)).decode("utf-8")
        for key in ("topicFilters", "freeTextQuery", "sinceTimestamp", "pageSize", "pageNumber", "locationContext"):
            self.assertIn(key, raw)

    def test_next_page(self):
        self.assertEqual(self.cursor.next_page().page_number, 3)
        self.assertEqual(self.cursor.page_number, 2)

    def test_malformed_tokens_are_rejected(self):
        not_json = base64.urlsafe_b64encode(b"hello").decode("ascii")
        missing_fields = base64.urlsafe_b64encode(b'{"topicFilters": []}').decode("ascii")
        bad_page = base64.urlsafe_b64encode(b'{"sinceTimestamp": 1, "pageSize": 0}').decode("ascii")
        far_future = base64.urlsafe_b64encode(b'{"sinceTimestamp": 100000000000000000000, "pageSize": 5}').decode("ascii")
        for token in ("", "   ", "%%%not-base64%%%", not_json, missing_fields, bad_page, far_future):
            with self.subTest(token=token):
                with self.assertRaises(InvalidCursorError):
                    decode_cursor(token)


if __name__ == "__main__":
    unittest.main()
