"""LLM REST clients."""

from .client import VertexRestClient, ChatCompletionsClient, LLMError, create_llm_client

__all__ = ["VertexRestClient", "ChatCompletionsClient", "LLMError", "create_llm_client"]
