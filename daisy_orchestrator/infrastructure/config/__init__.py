"""Configuration infrastructure package."""

from .settings import (
    AppSettings,
    AuthSettings,
    BackendSettings,
    ConversationSettings,
    TransportSettings,
    load_settings
)

__all__ = [
    'AppSettings',
    'AuthSettings',
    'BackendSettings',
    'ConversationSettings',
    'TransportSettings',
    'load_settings'
]
