import unittest
from unittest.mock import MagicMock
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_engine.services.assistant import EventAssistant
from event_engine.services.intent import Intent
from event_engine.services.retrieval import RetrievalRanker
from event_factories import StubTextProvider, make_event


class TestEventAssistant(unittest.TestCase):

    def setUp(self):
        self.store = MagicMock()
        self.store.find.return_value = [
            make_event(event_id="a", title="Jazz Night", price=0.0),
            make_event(event_id="b", title="Rock Concert", description="Loud guitars all night."),
        ]
        self.ranker = RetrievalRanker()

    def tearDown(self):
        self.ranker.close()

    def test_search_without_provider_uses_template(self):
        reply = EventAssistant(self.store, self.ranker).reply("find jazz events")
        self.assertEqual(reply.intent, Intent.SEARCH)
        self.assertEqual(reply.source, "template")
        self.assertEqual(reply.events[0].event.id, "a")
        self.assertIn("Jazz Night", reply.message)
        self.store.find.assert_called_once()

    def test_search_with_provider_uses_event_context(self):
        provider = StubTextProvider(reply="Jazz Night is on Saturday.")
        reply = EventAssistant(self.store, self.ranker, provider).reply("find jazz events")
        self.assertEqual(reply.source, "llm")
        self.assertEqual(reply.message, "Jazz Night is on Saturday.")
        self.assertIn("Event: Jazz Night", provider.prompts[0])

    def test_provider_failure_falls_back_to_template(self):
        provider = StubTextProvider(fail=True)
        reply = EventAssistant(self.store, self.ranker, provider).reply("find jazz events")
        self.assertEqual(reply.source, "template")
        self.assertIn("I found", reply.message)

    def test_price_question(self):
        reply = EventAssistant(self.store, self.ranker).reply("how much is the jazz ticket")
        self.assertEqual(reply.intent, Intent.PRICE)
        self.assertIn("free", reply.message)

    def test_no_results(self):
        self.store.find.return_value = []
        reply = EventAssistant(self.store, self.ranker).reply("find salsa events")
        self.assertEqual(reply.events, [])
        self.assertIn("couldn't find", reply.message)

    def test_greeting_does_not_search(self):
        reply = EventAssistant(self.store, self.ranker).reply("hello")
        self.assertEqual(reply.intent, Intent.GREETING)
        self.store.find.assert_not_called()

    def test_general_message_without_provider(self):
        reply = EventAssistant(self.store, self.ranker).reply("blah blah blah")
        self.assertEqual(reply.intent, Intent.GENERAL)
        self.assertIn("I can help you with", reply.message)


if __name__ == '__main__':
    unittest.main()
