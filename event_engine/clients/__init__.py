"""Convenience re-exports for SDK client factories."""

from .openai_client import create_openai_client  # noqa: F401
from .pinecone_client import create_pinecone, get_index as get_pinecone_index  # noqa: F401
from .mongodb_client import create_mongo_client  # noqa: F401
from .gemini_client import GEMINI_API_BASE, create_gemini_session  # noqa: F401

__all__ = [
    "create_openai_client",
    "create_pinecone",
    "get_pinecone_index",
    "create_mongo_client",
    "GEMINI_API_BASE",
    "create_gemini_session",
]
