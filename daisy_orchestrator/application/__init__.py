"""Application layer - Application services orchestrating business logic."""

from .error_classifier import ErrorClassifier, classify
from .orchestrator_client import OrchestratorClient

__all__ = [
    "ErrorClassifier",
    "OrchestratorClient",
    "classify"
]
