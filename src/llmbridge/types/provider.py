"""Provider enumeration for LLM providers with IDE autocomplete support"""

from __future__ import annotations

from enum import Enum
from typing import Union


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    NATIVE = "native"

    @classmethod
    def coerce(cls, value: Union["Provider", str]) -> "Provider":
        """Resolve a provider tag or name (case-insensitive); ValueError if unknown"""
        if isinstance(value, Provider):
            return value
        return cls(str(value).strip().lower())
