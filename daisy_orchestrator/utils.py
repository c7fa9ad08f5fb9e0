"""
Utility functions for the DaisyAI chat client.
"""

import logging
import sys


def setup_logging(level: str = "INFO", fmt: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s') -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )

    # Reduce noise from third-party libraries unless debugging
    if level.upper() != "DEBUG":
        for name in ("httpx", "httpcore", "urllib3", "google.auth"):
            logging.getLogger(name).setLevel(logging.WARNING)


def truncate_text(text: str, max_length: int = 100) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_length:
        return text
    return text[:max_length-3] + "..."
