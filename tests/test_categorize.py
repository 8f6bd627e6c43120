import unittest

from creatorpulse.analytics.categorize import (
    categorize,
    contains_keyword,
    extract_social_tags,
    extract_tags,
    extract_trending_topics,
    mentions_category_keyword,
)


class TestCategorize(unittest.TestCase):
    def test_first_matching_rule_wins(self):
        self.assertEqual(categorize("New AI startup raises funding"), "technology")

    def test_business(self):
        self.assertEqual(categorize("Startup closes seed funding round"), "business")

    def test_title_is_considered(self):
        self.assertEqual(categorize("", title="Celebrity spotted at movie premiere"), "entertainment")

    def test_case_insensitive(self):
        self.assertEqual(categorize("MACHINE LEARNING at scale"), "technology")

    def test_whole_words_only(self):
        # "said" must not match "ai"; "studying" must not match "study"
        self.assertEqual(categorize("She said the weather was nice"), "general")
        self.assertFalse(contains_keyword("studying hard", "study"))

    def test_empty_text_is_general(self):
        self.assertEqual(categorize(""), "general")
        self.assertEqual(categorize(None), "general")

    def test_science(self):
        self.assertEqual(categorize("A new study in climate research"), "science")

    def test_plurals_and_inflections(self):
        self.assertEqual(categorize("Startups are raising money"), "business")
        self.assertEqual(categorize("New movies this week"), "entertainment")
        self.assertEqual(categorize("Researchers publish studies"), "science")
        self.assertEqual(categorize("", title="Celebrities at the gala"), "entertainment")
        self.assertEqual(categorize("Funded teams"), "general")

    def test_keyword_must_start_a_word(self):
        self.assertTrue(mentions_category_keyword("AI-powered startups", "startup"))
        self.assertFalse(mentions_category_keyword("She said hello", "ai"))
        self.assertFalse(mentions_category_keyword("unstudied", "study"))


class TestTags(unittest.TestCase):
    def test_tags_follow_vocabulary_order(self):
        tags = extract_tags("Python and React on AWS with AI")
        self.assertEqual(tags, ["ai", "aws", "react", "python"])

    def test_tags_capped(self):
        text = "ai blockchain crypto startup funding ipo acquisition saas"
        self.assertEqual(len(extract_tags(text)), 5)
        self.assertEqual(len(extract_tags(text, limit=2)), 2)

    def test_no_tags(self):
        self.assertEqual(extract_tags("nothing to see here"), [])
        self.assertEqual(extract_tags(""), [])

    def test_social_tags(self):
        tags = extract_social_tags("Loving #BuildInPublic with @Alice and @bob #buildinpublic")
        self.assertEqual(tags, ["#buildinpublic", "@alice", "@bob"])

    def test_mentions_capped(self):
        text = " ".join(f"@user{i}" for i in range(8))
        self.assertEqual(len(extract_social_tags(text)), 5)


class TestTrendingTopics(unittest.TestCase):
    def test_repeated_keywords_rank_first(self):
        content = "OpenAI news. OpenAI again. OpenAI launch #ai Sam Altman"
        topics = extract_trending_topics(content)
        self.assertEqual(topics[0], "openai")
        self.assertIn("#ai", topics)
        self.assertIn("sam altman", topics)

    def test_limit(self):
        content = " ".join(f"#tag{i}" for i in range(30))
        self.assertEqual(len(extract_trending_topics(content, limit=7)), 7)

    def test_empty(self):
        self.assertEqual(extract_trending_topics(""), [])


if __name__ == "__main__":
    unittest.main()
