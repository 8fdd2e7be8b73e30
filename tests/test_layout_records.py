import json
import unittest
from datetime import date

from urlvault.ingestion.submission import Submission
from urlvault.storage import layout
from urlvault.storage.records import MetadataRecord, encode_pretty_json, encode_record


KEY = "a" * 64


class TestLayout(unittest.TestCase):
    def test_date_stamp(self):
        self.assertEqual(layout.date_stamp(date(2025, 1, 2)), "20250102")

    def test_url_path(self):
        self.assertEqual(layout.url_path(KEY), f"url/{KEY}.txt")

    def test_content_path_with_extension(self):
        self.assertEqual(layout.content_path(KEY, "pdf", "20250102"), f"categories/pdf/20250102/{KEY}.pdf")

    def test_content_path_without_extension(self):
        self.assertEqual(layout.content_path(KEY, None, "20250102"), f"categories/other/20250102/{KEY}")

    def test_metadata_partitioned_by_category(self):
        self.assertEqual(
            layout.metadata_path(KEY, "pdf", "reports", "20250102"),
            f"categories_json/pdf/reports/20250102/{KEY}.json",
        )

    def test_empty_category_keeps_empty_segment(self):
        self.assertEqual(
            layout.metadata_path(KEY, None, "", "20250102"),
            f"categories_json/other//20250102/{KEY}.json",
        )


class TestRecords(unittest.TestCase):
    def test_pretty_json_matches_php_encoding(self):
        text = encode_pretty_json({"url": "https://a/b", "title": "\u00e9"})
        self.assertEqual(text, '{\n    "url": "https:\\/\\/a\\/b",\n    "title": "\\u00e9"\n}')

    def test_record_key_order_and_round_trip(self):
        sub = Submission(url="https://example.com/doc.pdf", title="My Report", category="reports")
        record = MetadataRecord.from_submission(sub, date="20250102", key=KEY)
        payload = json.loads(encode_record(record).decode("utf-8"))
        self.assertEqual(
            list(payload),
            ["url", "user", "title", "description", "category", "btc", "pix", "date", "hash"],
        )
        self.assertEqual(payload["url"], "https://example.com/doc.pdf")
        self.assertEqual(payload["user"], "")
        self.assertEqual(payload["date"], "20250102")
        self.assertEqual(payload["hash"], KEY)


if __name__ == "__main__":
    unittest.main()
