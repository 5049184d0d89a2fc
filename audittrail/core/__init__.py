"""Core: config and composition root (bootstrap).

Single place for settings and process-wide audit wiring. Import the
composition root from audittrail.core.bootstrap.
"""

from audittrail.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
