"""
Domain Interfaces (Ports)
"""

from .clients import AuditLogger, EnrichmentSource

__all__ = [
    "AuditLogger",
    "EnrichmentSource",
]
