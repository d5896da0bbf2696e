"""llmbridge exception classes for conversion errors"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LLMBridgeError(Exception):
    """Base exception for all llmbridge errors"""
    pass


class ConversionError(LLMBridgeError):
    """Raised when conversion between formats fails"""

    def __init__(
        self,
        message: str,
        from_provider: str,
        to_provider: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.from_provider = from_provider
        self.to_provider = to_provider
        self.details = details or {}


class UnsupportedProviderError(LLMBridgeError):
    """Raised when an unsupported provider is requested"""

    def __init__(self, provider: str, supported_providers: list[str]) -> None:
        self.provider = provider
        self.supported_providers = supported_providers
        message = (
            f"Unsupported provider: '{provider}'. "
            f"Supported providers: {', '.join(supported_providers)}"
        )
        super().__init__(message)


class UnsupportedFeatureError(LLMBridgeError):
    """Raised when a feature is not supported by the target provider"""

    def __init__(
        self,
        feature: str,
        provider: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.feature = feature
        self.provider = provider
        self.details = details or {}
        message = f"Provider '{provider}' does not support feature: '{feature}'"
        super().__init__(message)


class UnsupportedRoleError(UnsupportedFeatureError):
    """Raised when an IR message role cannot be expressed by the target provider"""

    def __init__(self, role: str, provider: str) -> None:
        self.role = role
        self.feature = f"role:{role}"
        self.provider = provider
        self.details = {"role": role}
        LLMBridgeError.__init__(
            self,
            f"Provider '{provider}' cannot express messages with role '{role}'",
        )


class UnrecognizedRoleError(LLMBridgeError):
    """Raised when a message or delta carries a role string we do not know"""

    def __init__(self, role: Any, provider: str) -> None:
        self.role = role
        self.provider = provider
        super().__init__(f"Unknown {provider} message role: {role!r}")


class UnrecognizedStreamEventError(LLMBridgeError):
    """Raised when a stream event matches none of the start/delta/end/error shapes"""

    def __init__(self, provider: str, event: Any) -> None:
        self.provider = provider
        self.event = event
        event_type = event.get("type") if isinstance(event, dict) else None
        suffix = f" (type={event_type!r})" if event_type else ""
        super().__init__(f"Unknown {provider} stream event shape{suffix}")


class MalformedFrameError(LLMBridgeError):
    """Raised when a complete stream frame cannot be decoded"""

    def __init__(self, frame: str, reason: str) -> None:
        self.frame = frame
        self.reason = reason
        super().__init__(f"JSON parsing failed: {reason}")


class BufferSizeExceededError(LLMBridgeError):
    """Raised when buffered stream data would grow past the configured limit"""

    def __init__(
        self,
        current_size: int,
        max_size: int,
        additional_data_size: int,
    ) -> None:
        self.current_size = current_size
        self.max_size = max_size
        self.additional_data_size = additional_data_size
        message = (
            f"Buffer size exceeded: current size {current_size} + "
            f"additional data {additional_data_size} > max size {max_size}"
        )
        super().__init__(message)


class StreamStateError(LLMBridgeError):
    """Raised when a stream session receives an event its state does not allow"""

    def __init__(self, state: str, event_type: str) -> None:
        self.state = state
        self.event_type = event_type
        super().__init__(
            f"Stream event '{event_type}' is not allowed in state '{state}'"
        )


class RegistryFrozenError(LLMBridgeError):
    """Raised when registering an adapter after the registry was frozen"""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(
            f"Cannot register provider '{provider}': registry is frozen"
        )


class ValidationError(LLMBridgeError):
    """Raised when data validation fails"""

    def __init__(
        self,
        message: str,
        validation_errors: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.validation_errors = validation_errors or []


class IdempotencyError(LLMBridgeError):
    """Raised when idempotency test fails (A -> IR -> A)"""

    def __init__(
        self,
        original_data: Dict[str, Any],
        final_data: Dict[str, Any],
        differences: list[str],
    ) -> None:
        self.original_data = original_data
        self.final_data = final_data
        self.differences = differences
        message = (
            "Idempotency test failed. Data changed after round-trip conversion:\n"
            + "\n".join(differences)
        )
        super().__init__(message)
