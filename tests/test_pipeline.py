import unittest
from datetime import datetime, timezone
from unittest import mock

from creatorpulse.collectors.http_utils import CollectorError
from creatorpulse.collectors.page_fetcher import PageFetchResult, fetch_page
from creatorpulse.ingestion.candidate_types import PageRecord
from creatorpulse.pipeline import TrendPipeline, validate_source
from creatorpulse.ranking.ranker import RankingConfig


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _tweet(tid, likes=100):
    return {
        "id": tid,
        "text": f"AI launch update {tid}",
        "created_at": "2024-05-01T11:00:00Z",
        "public_metrics": {"like_count": likes, "retweet_count": 10, "reply_count": 5, "quote_count": 1},
    }


class FakeX:
    def __init__(self, fail_users=()):
        self.fail_users = set(fail_users)
        self.calls = []

    def get_user_tweets(self, username, max_results=10):
        self.calls.append(("user", username))
        if username in self.fail_users:
            raise CollectorError(f"X user not found: @{username}", status_code=404)
        return [dict(_tweet(f"{username}1"), author_username=username)]

    def search_tweets(self, query, max_results=10):
        self.calls.append(("search", query))
        return [_tweet("s1", likes=5000)]

    def get_trending_topics(self, woeid=1):
        return [{"name": "#GlobalTopic"}]


class FakeYouTube:
    def __init__(self):
        self.calls = []

    def resolve_channel_id(self, identifier):
        self.calls.append(("resolve", identifier))
        return "UC" + "x" * 22

    def get_channel_videos(self, channel_id, max_results=10):
        return [
            {
                "id": "v1",
                "snippet": {"title": "Startup tips", "channelTitle": "Creator", "publishedAt": "2024-05-01T10:00:00Z"},
                "statistics": {"viewCount": "10000", "likeCount": "500", "commentCount": "20"},
            }
        ]

    def get_trending_videos(self, region_code="US", max_results=10):
        self.calls.append(("trending", region_code))
        raise CollectorError("quota exceeded", status_code=403)


class FakeFirecrawl:
    def __init__(self):
        self.batches = []

    def batch_crawl(self, urls, *, limit=5, concurrency=3):
        self.batches.append(list(urls))
        return [PageRecord(url=urls[0], title="Research study", content="science " * 20, timestamp="2024-05-01T09:00:00Z")]

    def crawl_trending_sites(self):
        return [PageRecord(url="https://techcrunch.com/x", title="AI news", content="ai " * 50, timestamp="2024-05-01T11:30:00Z")]


class FakeRSS:
    def __init__(self, feeds):
        self.feeds = feeds

    def fetch(self, *, limit=50):
        return [PageRecord(url="https://blog.example.com/post", title="Movie review", content="movie", timestamp="2024-05-01T07:00:00Z")]


class TestValidateSource(unittest.TestCase):
    def test_valid_and_invalid(self):
        self.assertIsNone(validate_source({"type": "x", "content": "someone"}))
        self.assertIsNone(validate_source({"type": "url", "url": "https://example.com"}))
        self.assertIn("Invalid source type", validate_source({"type": "tiktok", "content": "a"}))
        self.assertIn("required", validate_source({"type": "rss"}))


class TestTrendPipeline(unittest.TestCase):
    def _pipeline(self, **kw):
        defaults = dict(x_client=FakeX(), youtube_client=FakeYouTube(), firecrawl_client=FakeFirecrawl(), rss_collector_factory=FakeRSS)
        defaults.update(kw)
        return TrendPipeline(**defaults)

    def test_source_routing(self):
        p = self._pipeline()
        sources = [
            {"type": "x", "content": "@builder"},
            {"type": "hashtag", "content": "#ai"},
            {"type": "youtube", "content": "somecreator"},
            {"type": "rss", "url": "https://blog.example.com/feed"},
            {"type": "url", "url": "https://x.com/founder"},
            {"type": "url", "url": "https://www.youtube.com/@channelname"},
            {"type": "url", "url": "https://example.org/news"},
            {"type": "url", "url": "https://www.box.com/blog"},
        ]
        out = p.collect_user_candidates(sources, now=NOW)
        self.assertIn(("user", "builder"), p.x_client.calls)
        self.assertIn(("search", "#ai"), p.x_client.calls)
        self.assertIn(("user", "founder"), p.x_client.calls)
        self.assertIn(("resolve", "somecreator"), p.youtube_client.calls)
        self.assertIn(("resolve", "channelname"), p.youtube_client.calls)
        self.assertEqual(p.firecrawl_client.batches, [["https://example.org/news"], ["https://www.box.com/blog"]])
        self.assertNotIn(("user", "blog"), p.x_client.calls)
        kinds = {c.source_kind for c in out}
        self.assertEqual(kinds, {"social", "video", "web"})

    def test_failing_source_is_isolated(self):
        p = self._pipeline(x_client=FakeX(fail_users={"ghost"}))
        out = p.collect_user_candidates(
            [{"type": "x", "content": "ghost"}, {"type": "x", "content": "real"}],
            now=NOW,
        )
        self.assertEqual([c.id for c in out], ["x_real1"])

    def test_missing_clients_skip_sources(self):
        p = TrendPipeline(page_fetcher=lambda url: PageFetchResult(page=None, status="blocked", error="blocked_host"))
        out = p.collect_user_candidates(
            [{"type": "x", "content": "a"}, {"type": "youtube", "content": "b"}, {"type": "url", "url": "http://localhost/"}],
            now=NOW,
        )
        self.assertEqual(out, [])

    def test_page_fetcher_used_without_firecrawl(self):
        page = PageRecord(url="https://example.org/a", title="Hello", content="text", timestamp="2024-05-01T11:00:00Z")
        p = TrendPipeline(page_fetcher=lambda url: PageFetchResult(page=page, status="ok"))
        (c,) = p.collect_user_candidates([{"type": "url", "url": "https://example.org/a"}], now=NOW)
        self.assertEqual(c.source_label, "example.org")

    def test_global_candidates_survive_partial_failure(self):
        p = self._pipeline()
        out = p.collect_global_candidates(now=NOW)
        self.assertIn(("search", "#GlobalTopic"), p.x_client.calls)
        self.assertIn(("trending", "US"), p.youtube_client.calls)
        self.assertEqual({c.source_kind for c in out}, {"social", "web"})

    def test_unexpected_collector_errors_are_isolated(self):
        class BrokenX(FakeX):
            def get_user_tweets(self, username, max_results=10):
                if username == "broken":
                    raise ValueError("unexpected payload shape")
                return super().get_user_tweets(username, max_results)

        def exploding_fetcher(url):
            raise RuntimeError("extractor crashed")

        p = self._pipeline(x_client=BrokenX(), firecrawl_client=None, page_fetcher=exploding_fetcher)
        out = p.collect_user_candidates(
            [
                {"type": "x", "content": "broken"},
                {"type": "url", "url": "https://example.org/a"},
                {"type": "x", "content": "real"},
            ],
            now=NOW,
        )
        self.assertEqual([c.id for c in out], ["x_real1"])

    def test_global_origin_unexpected_error_is_isolated(self):
        class BrokenFirecrawl(FakeFirecrawl):
            def crawl_trending_sites(self):
                raise KeyError("data")

        p = self._pipeline(firecrawl_client=BrokenFirecrawl())
        out = p.collect_global_candidates(now=NOW)
        self.assertEqual({c.source_kind for c in out}, {"social"})

    def test_same_url_from_user_and_global_keeps_both(self):
        p = self._pipeline(x_client=None, youtube_client=None)
        ranked = p.get_ranked_trends(
            [{"type": "url", "url": "https://techcrunch.com/x"}],
            RankingConfig(min_score=0.0),
            now=NOW,
        )
        web = [c for c in ranked if c.url == "https://techcrunch.com/x"]
        self.assertEqual(len(web), 2)
        self.assertEqual(len({c.id for c in web}), 2)

    @mock.patch("creatorpulse.collectors.page_fetcher.trafilatura.extract_metadata", return_value=None)
    @mock.patch("creatorpulse.collectors.page_fetcher.trafilatura.extract", return_value="Startups raise funding")
    def test_unknown_page_charset_does_not_abort_run(self, _extract, _meta):
        class Response:
            status_code = 200
            encoding = "x-bogus-charset"

            def iter_content(self, chunk_size=1):
                yield b"<html><p>Startups raise funding</p></html>"

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return False

        class Session:
            def get(self, url, **kwargs):
                return Response()

        p = TrendPipeline(page_fetcher=lambda url: fetch_page(url, session=Session()))
        ranked = p.get_ranked_trends(
            [{"type": "url", "url": "https://example.org/a"}],
            RankingConfig(min_score=0.0),
            now=NOW,
        )
        self.assertEqual(len(ranked), 1)
        self.assertEqual(ranked[0].category, "business")

    def test_get_ranked_trends(self):
        p = self._pipeline()
        ranked = p.get_ranked_trends(
            [{"type": "x", "content": "builder"}],
            RankingConfig(max_results=3, min_score=0.0),
            now=NOW,
        )
        self.assertLessEqual(len(ranked), 3)
        scores = [c.score.overall for c in ranked]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_exclude_global(self):
        p = self._pipeline()
        ranked = p.get_ranked_trends([], RankingConfig(min_score=0.0), include_global=False, now=NOW)
        self.assertEqual(ranked, [])


if __name__ == "__main__":
    unittest.main()
