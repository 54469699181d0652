"""Business portal core: knowledge ingestion, retrieval and inbound handling."""

from .config import ChunkingConfig, PortalSettings, QuietHoursConfig, RetrievalConfig

__all__ = ["ChunkingConfig", "PortalSettings", "QuietHoursConfig", "RetrievalConfig"]
