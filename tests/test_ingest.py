import json
import unittest
from datetime import date

from urlvault.extraction.download import DownloadResult
from urlvault.ingestion.ingest import ingest_submission
from urlvault.ingestion.submission import Submission
from urlvault.ingestion.url_utils import content_key
from urlvault.storage.store import MemoryStore, WriteResult


TODAY = date(2025, 1, 2)


class FakeFetcher:
    def __init__(self, result=None):
        self.result = result or DownloadResult(content=b"%PDF-1.4", status="ok", status_code=200)
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        return self.result


class ContentWriteFailingStore(MemoryStore):
    def put(self, path, data):
        if path.startswith("categories/"):
            return WriteResult(path=path, ok=False, error="Permission denied")
        return super().put(path, data)


class TestIngestSubmission(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.fetch = FakeFetcher()

    def ingest(self, form, store=None):
        return ingest_submission(
            Submission.from_form(form), store or self.store, fetch=self.fetch, today=TODAY
        )

    def test_pdf_stored_under_extension_and_date(self):
        url = "https://example.com/doc.PDF"
        result = self.ingest({"url": url})
        key = content_key(url)
        self.assertTrue(result.success)
        self.assertEqual(result.key, key)
        self.assertEqual(result.content_path, f"categories/pdf/20250102/{key}.pdf")
        self.assertEqual(self.store.read(f"url/{key}.txt"), url.encode("utf-8"))
        self.assertEqual(self.store.read(result.content_path), b"%PDF-1.4")
        self.assertEqual(self.fetch.calls, [url])

    def test_no_extension_goes_to_other_without_suffix(self):
        result = self.ingest({"url": "https://example.com/noext"})
        key = content_key("https://example.com/noext")
        self.assertEqual(result.content_path, f"categories/other/20250102/{key}")
        self.assertTrue(self.store.is_file(result.content_path))

    def test_no_metadata_when_optional_fields_empty(self):
        result = self.ingest({"url": "https://example.com/doc.pdf", "title": "", "user": ""})
        self.assertIsNone(result.metadata_path)
        self.assertFalse(self.store.is_dir("categories_json"))
        self.assertNotIn("[view JSON]", str(result.message))

    def test_metadata_written_with_title(self):
        url = "https://example.com/doc.pdf"
        result = self.ingest({"url": url, "title": "My Report", "category": "reports", "btc": "bc1q"})
        key = content_key(url)
        self.assertEqual(result.metadata_path, f"categories_json/pdf/reports/20250102/{key}.json")
        payload = json.loads(self.store.read(result.metadata_path))
        self.assertEqual(payload, {
            "url": url,
            "user": "",
            "title": "My Report",
            "description": "",
            "category": "reports",
            "btc": "bc1q",
            "pix": "",
            "date": "20250102",
            "hash": key,
        })
        self.assertIn("[view JSON]", str(result.message))

    def test_empty_category_uses_empty_segment(self):
        url = "https://example.com/noext"
        result = self.ingest({"url": url, "title": "Untitled bucket"})
        key = content_key(url)
        self.assertEqual(result.metadata_path, f"categories_json/other//20250102/{key}.json")
        self.assertTrue(self.store.is_file(f"categories_json/other/20250102/{key}.json"))

    def test_key_uses_sanitized_url(self):
        result = self.ingest({"url": " https://example.com/a?x=1&y=2 "})
        sanitized = "https://example.com/a?x=1&amp;y=2"
        self.assertEqual(result.key, content_key(sanitized))
        self.assertEqual(self.store.read(f"url/{result.key}.txt"), sanitized.encode("utf-8"))
        self.assertEqual(self.fetch.calls, [sanitized])

    def test_metadata_values_are_sanitized(self):
        result = self.ingest({"url": "https://example.com/x.html", "title": "<b>Q&A</b>"})
        payload = json.loads(self.store.read(result.metadata_path))
        self.assertEqual(payload["title"], "Q&amp;A")

    def test_download_failure_writes_empty_file(self):
        self.fetch = FakeFetcher(DownloadResult(content=b"", status="error", error="connection refused"))
        with self.assertLogs("urlvault.ingestion.ingest", level="WARNING"):
            result = self.ingest({"url": "https://unreachable.invalid/file.zip"})
        self.assertTrue(result.success)
        self.assertEqual(self.store.read(result.content_path), b"")

    def test_write_failure_still_reports_success(self):
        store = ContentWriteFailingStore()
        with self.assertLogs("urlvault.ingestion.ingest", level="WARNING") as logs:
            result = self.ingest({"url": "https://example.com/doc.pdf"}, store=store)
        self.assertTrue(result.success)
        self.assertEqual([w.path for w in result.failed_writes], [result.content_path])
        self.assertIn(result.content_path, str(result.message))
        self.assertTrue(any("Permission denied" in line for line in logs.output))
        self.assertTrue(store.is_file(f"url/{result.key}.txt"))

    def test_repeat_submission_is_stable(self):
        first = self.ingest({"url": "https://example.com/doc.pdf", "title": "A"})
        second = self.ingest({"url": "https://example.com/doc.pdf", "title": "A"})
        self.assertEqual(first.key, second.key)
        self.assertEqual(first.metadata_path, second.metadata_path)
        self.assertEqual(second.failed_writes, [])

    def test_message_links_are_html_safe(self):
        result = self.ingest({"url": "https://example.com/doc.pdf", "title": "t", "category": "a&b"})
        html = str(result.message)
        self.assertIn(f'href="{result.content_path}"', html)
        self.assertIn("categories_json/pdf/a&amp;amp;b/", html)
        self.assertNotIn("a&b", html)


if __name__ == "__main__":
    unittest.main()
