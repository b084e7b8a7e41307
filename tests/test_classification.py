import unittest
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_engine.models import Category
from event_engine.services.classification import (
    category_scores,
    classification_confidence,
    classify_event,
)


class TestClassification(unittest.TestCase):

    def test_music(self):
        self.assertEqual(classify_event("Jazz Concert", "Live band performance in the park"), Category.MUSIC)

    def test_sports(self):
        self.assertEqual(classify_event("City Marathon", "Annual race through downtown"), Category.SPORTS)

    def test_no_keywords_is_other(self):
        self.assertEqual(classify_event("Meetup", "Come say hello"), Category.OTHER)

    def test_title_matches_weigh_more(self):
        scores = category_scores("Art Workshop", "painting")
        # workshop: 1 in text + 1.5 in title; exhibition: art + painting in text + 1.5 for art in title
        self.assertEqual(scores[Category.WORKSHOP], 2.5)
        self.assertEqual(scores[Category.EXHIBITION], 3.5)
        self.assertEqual(classify_event("Art Workshop", "painting"), Category.EXHIBITION)

    def test_whole_words_only(self):
        # "artist" and "classic" must not count as "art" and "class"
        self.assertEqual(classify_event("Artist talk", "A classic evening"), Category.OTHER)

    def test_confidence(self):
        self.assertEqual(classification_confidence("Football match", "tournament game", Category.SPORTS), 0.8)
        self.assertEqual(classification_confidence("Football match", "", Category.MUSIC), 0.0)
        self.assertEqual(classification_confidence("x", "y", Category.OTHER), 0.0)
        self.assertEqual(
            classification_confidence("sport sport sport", "match game tournament", "sports"), 1.0
        )


if __name__ == '__main__':
    unittest.main()
