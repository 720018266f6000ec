"""
Shared utilities for the list harvester.

This package is intentionally small and focused. It currently provides:

- `shared.config` for environment-based configuration
- `shared.logging` for structlog-based structured logging

The harvesting code in `harvester/` should treat `shared/` as read-only
infrastructure and avoid introducing harvesting-specific coupling here.
"""
