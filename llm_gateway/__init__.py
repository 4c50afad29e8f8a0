from __future__ import annotations  # Chat completion gateway used by the text generators

from .llm_gateway import HttpClient, HttpResponse, LlmGatewayError, call, chat, runnable

__all__ = ["HttpClient", "HttpResponse", "LlmGatewayError", "call", "chat", "runnable"]
