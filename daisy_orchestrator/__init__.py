"""
DaisyAI chat client - streams answers from the DaisyAI orchestrator agent.
"""

__version__ = "1.0.0"

__all__ = [
    "OrchestratorClient",
    "OrchestratorError",
    "ErrorKind",
    "StreamEvent",
    "load_settings",
]


# Lazy attribute access to avoid importing httpx/google-auth at package import time.
def __getattr__(name: str):  # pragma: no cover - simple lazy loader
    if name == "OrchestratorClient":
        from .application.orchestrator_client import OrchestratorClient as _C
        return _C
    if name in {"OrchestratorError", "ErrorKind"}:
        from .domain import errors
        return getattr(errors, name)
    if name == "StreamEvent":
        from .domain.models.events import StreamEvent as _E
        return _E
    if name == "load_settings":
        from .infrastructure.config.settings import load_settings as _L
        return _L
    raise AttributeError(f"module 'daisy_orchestrator' has no attribute {name!r}")
