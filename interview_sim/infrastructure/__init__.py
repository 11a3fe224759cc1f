"""Infrastructure components for the interview simulator.

This module contains the external-service adapters the session engine is
wired to: LLM REST clients and the session archive.
"""

# LLM infrastructure
from .llm import VertexRestClient, ChatCompletionsClient, LLMError, create_llm_client

# Session storage
from .data import SessionArchive

__all__ = [
    # LLM clients
    "VertexRestClient", "ChatCompletionsClient", "LLMError", "create_llm_client",

    # Storage
    "SessionArchive"
]
