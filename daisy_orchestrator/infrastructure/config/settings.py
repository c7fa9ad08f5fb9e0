"""
Configuration settings - Infrastructure component for managing application configuration.
Uses Pydantic for validation and environment variable loading.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class BackendSettings(BaseSettings):
    """Agent backend location."""

    # Full URL override; when unset the Agent Engine URL is derived below
    backend_url: Optional[str] = None
    endpoint: str = "https://us-central1-aiplatform.googleapis.com"
    api_version: str = "v1beta1"
    project_id: Optional[str] = None
    location: str = "us-central1"
    engine_id: Optional[str] = None
    display_name: str = "daisy-orchestrator"

    model_config = SettingsConfigDict(env_prefix='DAISY_AGENT_', env_file='.env', extra='ignore')

    @property
    def url(self) -> Optional[str]:
        """Resolved backend URL, or None when not enough is configured."""
        if self.backend_url:
            return self.backend_url
        if not (self.project_id and self.engine_id):
            return None
        return (
            f"{self.endpoint.rstrip('/')}/{self.api_version}/projects/{self.project_id}"
            f"/locations/{self.location}/reasoningEngines/{self.engine_id}:streamQuery"
        )


class TransportSettings(BaseSettings):
    """HTTP timeouts and retry behaviour."""

    connect_timeout_s: float = 5.0
    read_timeout_s: float = 540.0
    max_retries: int = 2
    backoff_base: float = 0.5
    max_delay: float = 8.0
    jitter_max: float = 0.1

    # Retryable HTTP status codes
    retryable_status_codes: str = '502,503,504'

    model_config = SettingsConfigDict(env_prefix='DAISY_HTTP_', env_file='.env', extra='ignore')

    @field_validator('max_retries')
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        return max(0, v)

    @property
    def retryable_codes(self) -> List[int]:
        """Parse comma-separated status codes into list."""
        try:
            return [int(code.strip()) for code in self.retryable_status_codes.split(',') if code.strip()]
        except ValueError:
            return [502, 503, 504]


class AuthSettings(BaseSettings):
    """Credential sources."""

    # Interactive identity restored from a prior Firebase sign-in
    firebase_api_key: Optional[str] = None
    firebase_refresh_token: Optional[str] = None
    firebase_uid: Optional[str] = None
    access_token: Optional[str] = None
    scopes: str = CLOUD_PLATFORM_SCOPE

    model_config = SettingsConfigDict(env_prefix='DAISY_AUTH_', env_file='.env', extra='ignore')

    @property
    def scope_list(self) -> List[str]:
        return [s.strip() for s in self.scopes.split(',') if s.strip()]


class ConversationSettings(BaseSettings):
    """Conversation management configuration."""

    max_history: int = 10
    max_message_chars: int = 10000
    default_user_id: str = 'anonymous'
    pseudo_stream_enabled: bool = True
    pseudo_stream_delay_s: float = 0.03

    model_config = SettingsConfigDict(env_prefix='DAISY_CHAT_', env_file='.env', extra='ignore')

    @field_validator('max_history')
    @classmethod
    def validate_max_history(cls, v: int) -> int:
        """Ensure max history stays within the context window."""
        return max(1, min(v, 10))


class AppSettings(BaseSettings):
    """Main application settings."""

    # Sub-configurations
    backend: BackendSettings = Field(default_factory=BackendSettings)
    transport: TransportSettings = Field(default_factory=TransportSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    conversation: ConversationSettings = Field(default_factory=ConversationSettings)

    # Logging
    log_level: str = 'INFO'
    log_format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    model_config = SettingsConfigDict(env_prefix='DAISY_', env_file='.env', extra='ignore')

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            return 'INFO'
        return v.upper()

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary for display; secrets are masked."""
        auth = self.auth.model_dump()
        for key in ('firebase_api_key', 'firebase_refresh_token', 'access_token'):
            if auth.get(key):
                auth[key] = '***'
        return {
            'backend': self.backend.model_dump(),
            'transport': self.transport.model_dump(),
            'auth': auth,
            'conversation': self.conversation.model_dump(),
            'log_level': self.log_level
        }

    def validate_required_settings(self) -> List[str]:
        """Validate required settings and return list of missing ones."""
        missing = []
        if self.backend.url is None:
            if not self.backend.project_id:
                missing.append('DAISY_AGENT_PROJECT_ID')
            if not self.backend.engine_id:
                missing.append('DAISY_AGENT_ENGINE_ID')
        return missing


def load_settings(**overrides: Any) -> AppSettings:
    """Build a fresh settings object from the environment."""
    return AppSettings(**overrides)
