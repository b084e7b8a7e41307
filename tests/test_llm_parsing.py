import unittest
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_engine.utils.llm_parsing import extract_structured_json, strip_think_blocks


class TestLLMParsing(unittest.TestCase):

    def test_plain_json(self):
        self.assertEqual(extract_structured_json('{"riskScore": 0.1}'), {"riskScore": 0.1})

    def test_think_block_and_fence(self):
        text = '<think>checking</think>\n```json\n{"riskScore": 0.4}\n```'
        self.assertEqual(extract_structured_json(text), {"riskScore": 0.4})

    def test_json_inside_prose(self):
        text = 'Here is my assessment: {"riskScore": 0.9, "isFlagged": true} Hope this helps.'
        self.assertEqual(extract_structured_json(text), {"riskScore": 0.9, "isFlagged": True})

    def test_non_object_is_rejected(self):
        with self.assertRaises(ValueError):
            extract_structured_json("[1, 2, 3]")

    def test_no_json(self):
        with self.assertRaises(ValueError):
            extract_structured_json("The event looks fine.")

    def test_strip_think_blocks(self):
        self.assertEqual(strip_think_blocks("<think>x</think> answer "), "answer")
        self.assertEqual(strip_think_blocks(""), "")


if __name__ == '__main__':
    unittest.main()
