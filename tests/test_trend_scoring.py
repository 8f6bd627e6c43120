import math
import unittest
from datetime import datetime, timedelta, timezone

from creatorpulse.ingestion.candidate_types import Candidate, TrendMetrics
from creatorpulse.scoring.trend_scoring import (
    ScoringPolicy,
    age_hours,
    compute_trend_score,
    engagement_score,
    parse_timestamp,
    popularity_score,
    recency_score,
    score_candidate,
)


NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _iso(dt):
    return dt.isoformat().replace("+00:00", "Z")


class TestRecency(unittest.TestCase):
    def test_recency_is_one_at_now(self):
        self.assertAlmostEqual(recency_score(_iso(NOW), now=NOW), 1.0, places=9)

    def test_recency_decays_exponentially(self):
        self.assertAlmostEqual(recency_score(_iso(NOW - timedelta(hours=24)), now=NOW), math.exp(-1), places=6)
        self.assertAlmostEqual(recency_score(_iso(NOW - timedelta(hours=48)), now=NOW), math.exp(-2), places=6)

    def test_future_timestamp_counts_as_now(self):
        self.assertEqual(age_hours(_iso(NOW + timedelta(hours=5)), NOW), 0.0)
        self.assertAlmostEqual(recency_score(_iso(NOW + timedelta(hours=5)), now=NOW), 1.0)

    def test_invalid_timestamp_counts_as_now(self):
        self.assertIsNone(parse_timestamp("not a date"))
        self.assertEqual(age_hours("not a date", NOW), 0.0)
        self.assertEqual(age_hours(None, NOW), 0.0)

    def test_rfc2822_timestamps_parse(self):
        dt = parse_timestamp("Wed, 01 May 2024 10:00:00 GMT")
        self.assertEqual(dt, NOW - timedelta(hours=2))

    def test_naive_timestamps_are_utc(self):
        self.assertAlmostEqual(age_hours("2024-05-01T06:00:00", NOW), 6.0)

    def test_custom_decay(self):
        policy = ScoringPolicy(recency_decay_hours=12)
        self.assertAlmostEqual(recency_score(_iso(NOW - timedelta(hours=12)), now=NOW, policy=policy), math.exp(-1), places=6)


class TestPopularityAndEngagement(unittest.TestCase):
    def test_missing_metrics_score_zero(self):
        self.assertEqual(popularity_score(TrendMetrics()), 0.0)
        self.assertEqual(engagement_score(TrendMetrics()), 0.0)
        self.assertEqual(popularity_score(None), 0.0)

    def test_popularity_saturates_at_one(self):
        self.assertEqual(popularity_score(TrendMetrics(likes=50_000_000)), 1.0)

    def test_popularity_monotonic_in_likes(self):
        a = popularity_score(TrendMetrics(likes=10))
        b = popularity_score(TrendMetrics(likes=1000))
        self.assertLess(a, b)

    def test_views_are_discounted(self):
        self.assertAlmostEqual(
            popularity_score(TrendMetrics(views=10_000)),
            popularity_score(TrendMetrics(likes=100)),
        )

    def test_engagement_capped(self):
        self.assertEqual(engagement_score(TrendMetrics(likes=10, comments=10)), 1.0)

    def test_engagement_zero_without_impressions(self):
        self.assertEqual(engagement_score(TrendMetrics(comments=50, shares=3)), 0.0)

    def test_negative_counts_are_ignored(self):
        self.assertEqual(popularity_score(TrendMetrics(likes=-5)), 0.0)


class TestOverall(unittest.TestCase):
    def test_worked_example(self):
        metrics = TrendMetrics(likes=1000, shares=200, comments=50, views=500_000)
        score = compute_trend_score(_iso(NOW), metrics, now=NOW)
        self.assertAlmostEqual(score.recency, 1.0, places=6)
        self.assertAlmostEqual(score.popularity, math.log10(6251) / 6, places=6)
        self.assertAlmostEqual(score.popularity, 0.637, places=3)
        self.assertAlmostEqual(score.engagement, 0.05, places=9)
        self.assertAlmostEqual(score.overall, 0.665, places=3)

    def test_all_scores_in_unit_interval(self):
        cases = [
            TrendMetrics(),
            TrendMetrics(likes=1, views=0),
            TrendMetrics(likes=10**9, shares=10**9, comments=10**9, views=10**12, retweets=10**9),
        ]
        for ts in (_iso(NOW), _iso(NOW - timedelta(days=30)), "garbage"):
            for m in cases:
                s = compute_trend_score(ts, m, now=NOW)
                for v in (s.recency, s.popularity, s.engagement, s.overall):
                    self.assertGreaterEqual(v, 0.0)
                    self.assertLessEqual(v, 1.0)

    def test_overall_clamped_for_oversized_weights(self):
        policy = ScoringPolicy(recency_weight=1.0, popularity_weight=1.0, engagement_weight=1.0)
        s = compute_trend_score(_iso(NOW), TrendMetrics(likes=10**9, comments=10**9), now=NOW, policy=policy)
        self.assertEqual(s.overall, 1.0)

    def test_score_candidate_returns_new_value(self):
        c = Candidate(
            id="x_1",
            title="t",
            content="t",
            source_label="@a",
            source_kind="social",
            url="https://x.com/i/status/1",
            timestamp=_iso(NOW),
            metrics=TrendMetrics(likes=10),
        )
        scored = score_candidate(c, now=NOW)
        self.assertEqual(c.score.overall, 0.0)
        self.assertGreater(scored.score.overall, 0.4)
        self.assertEqual(scored.id, c.id)

    def test_deterministic_for_fixed_now(self):
        m = TrendMetrics(likes=42, views=9000, comments=3)
        self.assertEqual(
            compute_trend_score("2024-05-01T01:00:00Z", m, now=NOW),
            compute_trend_score("2024-05-01T01:00:00Z", m, now=NOW),
        )

    def test_policy_validation(self):
        self.assertEqual(ScoringPolicy().validate(), [])
        errors = ScoringPolicy(recency_weight=-1, recency_decay_hours=0).validate()
        self.assertEqual(len(errors), 2)


if __name__ == "__main__":
    unittest.main()
