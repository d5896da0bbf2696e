"""Provider capabilities matrix for compatibility checking"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Literal, Optional, Union

from ..ir.schema import IRRequest, Role
from ..types.provider import Provider

StreamFormat = Literal["sse_data", "typed_events"]


@dataclass(frozen=True)
class ProviderCapabilities:
    """Wire-level capabilities and limitations of an LLM provider"""

    provider: Provider

    # Message format
    message_roles: FrozenSet[Role] = frozenset(Role)
    separate_system_field: bool = False
    supports_message_name: bool = True

    # Generation parameters
    requires_max_tokens: bool = False
    supports_frequency_penalty: bool = True
    supports_presence_penalty: bool = True

    # Streaming
    stream_format: StreamFormat = "sse_data"
    stream_sentinel: Optional[str] = None

    def supports_role(self, role: Role) -> bool:
        if role is Role.SYSTEM and self.separate_system_field:
            return True
        return role in self.message_roles


class ProviderCapabilityMatrix:
    """Registry of all provider capabilities"""

    _capabilities: Dict[Provider, ProviderCapabilities] = {}

    @classmethod
    def register(cls, capabilities: ProviderCapabilities) -> None:
        """Register capabilities for a provider"""
        cls._capabilities[capabilities.provider] = capabilities

    @classmethod
    def get_capabilities(cls, provider: Union[Provider, str]) -> ProviderCapabilities:
        """Get capabilities for a provider"""
        provider = Provider.coerce(provider)
        if provider not in cls._capabilities:
            return ProviderCapabilities(provider=provider)
        return cls._capabilities[provider]

    @classmethod
    def check_compatibility(
        cls,
        to_provider: Union[Provider, str],
        request: IRRequest,
    ) -> list[str]:
        """List what the target provider will drop or needs when sending ``request``

        Roles the target cannot express are not listed; the transform raises
        for those.
        """
        warnings = []
        to_caps = cls.get_capabilities(to_provider)
        target = to_caps.provider.value

        if not to_caps.supports_message_name and any(m.name for m in request.messages):
            warnings.append(
                f"Target provider '{target}' has no message name field (names will be dropped)"
            )

        if request.frequency_penalty is not None and not to_caps.supports_frequency_penalty:
            warnings.append(
                f"Target provider '{target}' does not support frequency_penalty (will be dropped)"
            )

        if request.presence_penalty is not None and not to_caps.supports_presence_penalty:
            warnings.append(
                f"Target provider '{target}' does not support presence_penalty (will be dropped)"
            )

        if to_caps.requires_max_tokens and request.max_tokens is None:
            warnings.append(
                f"Target provider '{target}' requires max_tokens"
            )

        return warnings


# Register known provider capabilities
ProviderCapabilityMatrix.register(
    ProviderCapabilities(
        provider=Provider.OPENAI,
        stream_format="sse_data",
        stream_sentinel="[DONE]",
    )
)

ProviderCapabilityMatrix.register(
    ProviderCapabilities(
        provider=Provider.ANTHROPIC,
        message_roles=frozenset({Role.USER, Role.ASSISTANT}),
        separate_system_field=True,
        supports_message_name=False,
        requires_max_tokens=True,
        supports_frequency_penalty=False,
        supports_presence_penalty=False,
        stream_format="typed_events",
    )
)

ProviderCapabilityMatrix.register(
    ProviderCapabilities(
        provider=Provider.NATIVE,
        stream_format="typed_events",
    )
)
