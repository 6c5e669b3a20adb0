"""
ArrowSphere CLI - Three-layer client for the ArrowSphere customers API.

Layers:
- core: Request pipeline, error classification, entity types, pagination
- sdk: High-level ArrowSphereClient with typed and raw methods
- cli: Opinionated command-line interface
"""

from arrowsphere_cli.sdk import ArrowSphereClient

__version__ = "0.1.0"
__all__ = ["ArrowSphereClient"]
