"""HTTP relay built on llmbridge"""

from .app import create_app
from .config import BridgeSettings, load_settings

__all__ = ["BridgeSettings", "create_app", "load_settings"]
