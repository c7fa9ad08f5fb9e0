"""Agent Engine infrastructure package."""

from .transport import AgentEngineTransport, parse_single_response
from .retry import RetryConfig, RetryPolicy, extract_status_code

__all__ = ['AgentEngineTransport', 'parse_single_response', 'RetryConfig', 'RetryPolicy', 'extract_status_code']
