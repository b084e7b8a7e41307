import unittest
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_engine.utils.text_similarity import (
    bigram_cosine_similarity,
    jaccard_similarity,
    levenshtein_distance,
    normalized_levenshtein,
    similarity,
)


class TestTextSimilarity(unittest.TestCase):

    def test_identical_strings_score_one(self):
        for text in ["Jazz Night", "a", "Community Garden Workshop", ""]:
            self.assertEqual(similarity(text, text), 1.0)

    def test_case_and_whitespace_are_ignored(self):
        self.assertEqual(similarity("Jazz Night", "  jazz night "), 1.0)

    def test_disjoint_strings_score_zero(self):
        self.assertAlmostEqual(similarity("abc", "xyz"), 0.0)

    def test_one_empty_side_scores_zero(self):
        self.assertEqual(similarity("Jazz Night", ""), 0.0)
        self.assertEqual(similarity(None, "Jazz Night"), 0.0)

    def test_symmetry(self):
        pairs = [
            ("Jazz Night", "Jazz Nite"),
            ("Summer music festival", "Music festival in summer"),
            ("Football match", "Tennis tournament final"),
        ]
        for a, b in pairs:
            self.assertEqual(similarity(a, b), similarity(b, a))

    def test_similar_titles_score_between_bounds(self):
        score = similarity("Jazz Night", "Jazz Nite")
        self.assertGreater(score, 0.5)
        self.assertLess(score, 1.0)

    def test_component_measures(self):
        self.assertAlmostEqual(jaccard_similarity("jazz night", "jazz nite"), 1 / 3)
        self.assertEqual(levenshtein_distance("kitten", "sitting"), 3)
        self.assertEqual(normalized_levenshtein("", ""), 1.0)
        self.assertAlmostEqual(bigram_cosine_similarity("abab", "abab"), 1.0)
        self.assertEqual(bigram_cosine_similarity("a", "b"), 0.0)


if __name__ == '__main__':
    unittest.main()
