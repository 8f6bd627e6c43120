import json
import os
import tempfile
import unittest

import detect_trends_worker
from creatorpulse.settings import Settings


class TestDetectTrendsWorker(unittest.TestCase):
    def _write(self, data):
        fd, path = tempfile.mkstemp(suffix=".json")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f)
        self.addCleanup(os.remove, path)
        return path

    def test_load_sources_skips_invalid(self):
        path = self._write(
            [
                {"type": "x", "content": "builder"},
                {"type": "tiktok", "content": "nope"},
                {"type": "rss"},
                "junk",
            ]
        )
        self.assertEqual(detect_trends_worker.load_sources(path), [{"type": "x", "content": "builder"}])

    def test_load_sources_accepts_wrapped_list(self):
        path = self._write({"sources": [{"type": "url", "url": "https://example.com"}]})
        self.assertEqual(len(detect_trends_worker.load_sources(path)), 1)

    def test_missing_sources_file(self):
        self.assertEqual(detect_trends_worker.load_sources("/nonexistent/sources.json"), [])

    def test_build_pipeline_without_keys(self):
        pipeline = detect_trends_worker.build_pipeline(Settings())
        self.assertIsNone(pipeline.x_client)
        self.assertIsNone(pipeline.youtube_client)
        self.assertIsNone(pipeline.firecrawl_client)

    def test_run_once_without_sources_or_keys(self):
        settings = Settings(sources_file=self._write([]))
        payload = detect_trends_worker.run_once(settings)
        self.assertEqual(payload["rankedTrends"], [])
        self.assertEqual(payload["metadata"]["totalSources"], 0)


if __name__ == "__main__":
    unittest.main()
