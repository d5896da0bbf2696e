"""Utility components for llmbridge

``provider_registry`` is imported from its module; it depends on the adapter
base class, which itself depends on this package.
"""

from .capability_matrix import ProviderCapabilities, ProviderCapabilityMatrix

__all__ = [
    "ProviderCapabilities",
    "ProviderCapabilityMatrix",
]
