"""Infrastructure layer - Adapters for HTTP, credentials and configuration."""
