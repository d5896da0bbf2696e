"""Adapters for various LLM providers"""

from .anthropic import AnthropicAdapter
from .native import NativeAdapter
from .openai import OpenAIAdapter

__all__ = ["AnthropicAdapter", "NativeAdapter", "OpenAIAdapter"]
