import unittest
from unittest.mock import MagicMock
import os
import sys

import requests
from openai import OpenAIError

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_engine.errors import ConfigurationError, ProviderError
from event_engine.services.embeddings import (
    HASH_SOURCE,
    FallbackEmbeddingProvider,
    GeminiEmbeddingProvider,
    HashEmbeddingProvider,
    OpenAIEmbeddingProvider,
    hash_seed,
    is_semantic_source,
)
from event_factories import StubEmbeddingProvider


class TestOpenAIEmbeddingProvider(unittest.TestCase):

    def test_embed(self):
        mock_client = MagicMock()
        mock_client.embeddings.create.return_value = MagicMock(data=[MagicMock(embedding=[0.1] * 8)])

        provider = OpenAIEmbeddingProvider(mock_client, model="test-model", dimension=8)
        result = provider.embed("Test text")

        self.assertEqual(result, [0.1] * 8)
        mock_client.embeddings.create.assert_called_once_with(
            model="test-model", input="Test text", dimensions=8
        )

    def test_sdk_error_becomes_provider_error(self):
        mock_client = MagicMock()
        mock_client.embeddings.create.side_effect = OpenAIError("quota exceeded")
        with self.assertRaises(ProviderError) as ctx:
            OpenAIEmbeddingProvider(mock_client, dimension=8).embed("Test text")
        self.assertEqual(ctx.exception.provider, "openai")

    def test_wrong_length_is_rejected(self):
        mock_client = MagicMock()
        mock_client.embeddings.create.return_value = MagicMock(data=[MagicMock(embedding=[0.1] * 3)])
        with self.assertRaises(ProviderError):
            OpenAIEmbeddingProvider(mock_client, dimension=8).embed("Test text")

    def test_empty_response_becomes_provider_error(self):
        mock_client = MagicMock()
        mock_client.embeddings.create.return_value = MagicMock(data=[])
        with self.assertRaises(ProviderError):
            OpenAIEmbeddingProvider(mock_client, dimension=8).embed("Test text")

        mock_client.embeddings.create.return_value = MagicMock(data=[MagicMock(embedding=None)])
        with self.assertRaises(ProviderError):
            OpenAIEmbeddingProvider(mock_client, dimension=8).embed("Test text")


class TestGeminiEmbeddingProvider(unittest.TestCase):

    def test_embed(self):
        session = MagicMock()
        session.post.return_value = MagicMock(
            status_code=200, json=MagicMock(return_value={"embedding": {"values": [0.5] * 4}})
        )
        provider = GeminiEmbeddingProvider(session, "key", dimension=4)
        self.assertEqual(provider.embed("hello"), [0.5] * 4)
        self.assertIn(":embedContent", session.post.call_args[0][0])

    def test_http_error(self):
        session = MagicMock()
        session.post.return_value = MagicMock(status_code=429)
        with self.assertRaises(ProviderError):
            GeminiEmbeddingProvider(session, "key", dimension=4).embed("hello")

    def test_network_error(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("down")
        with self.assertRaises(ProviderError):
            GeminiEmbeddingProvider(session, "key", dimension=4).embed("hello")


class TestHashEmbedding(unittest.TestCase):

    def test_deterministic(self):
        provider = HashEmbeddingProvider(16)
        self.assertEqual(provider.embed("Jazz Night"), provider.embed("Jazz Night"))

    def test_different_text_gives_different_vector(self):
        provider = HashEmbeddingProvider(16)
        self.assertNotEqual(provider.embed("Jazz Night"), provider.embed("Jazz Nite"))

    def test_shape_and_range(self):
        vector = HashEmbeddingProvider(32).embed("anything")
        self.assertEqual(len(vector), 32)
        self.assertTrue(all(-1.0 <= v <= 1.0 for v in vector))

    def test_hash_seed_is_32_bit(self):
        self.assertEqual(hash_seed(""), 0)
        self.assertEqual(hash_seed("a"), 97)
        self.assertLess(hash_seed("x" * 1000), 2 ** 32)


class TestFallbackEmbeddingProvider(unittest.TestCase):

    def test_uses_primary_when_available(self):
        chain = FallbackEmbeddingProvider(StubEmbeddingProvider(dimension=4))
        vector, source = chain.embed_with_source("text")
        self.assertEqual(source, "stub")
        self.assertEqual(chain.stats(), {"primary": 1, "fallback": 0})
        self.assertTrue(is_semantic_source(source))

    def test_falls_back_to_hash_and_logs(self):
        chain = FallbackEmbeddingProvider(StubEmbeddingProvider(dimension=4, fail=True))
        with self.assertLogs("event_engine.services.embeddings", level="WARNING") as logs:
            vector, source = chain.embed_with_source("text")
        self.assertEqual(source, HASH_SOURCE)
        self.assertFalse(is_semantic_source(source))
        self.assertEqual(vector, HashEmbeddingProvider(4).embed("text"))
        self.assertEqual(chain.stats()["fallback"], 1)
        self.assertIn("not semantic", logs.output[0])

    def test_without_primary(self):
        chain = FallbackEmbeddingProvider(None, dimension=6)
        self.assertEqual(len(chain.embed("text")), 6)

    def test_dimension_mismatch_is_a_configuration_error(self):
        with self.assertRaises(ConfigurationError):
            FallbackEmbeddingProvider(StubEmbeddingProvider(dimension=4), HashEmbeddingProvider(8))


if __name__ == '__main__':
    unittest.main()
