"""End-to-end ingest pipeline: parse -> chunk -> index -> replace."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from bizportal.errors import TenantNotFoundError, UnprocessableContentError
from bizportal.ingest.chunker import SentencePackingChunker
from bizportal.ingest.parser import HtmlParser
from bizportal.ingest.tokenizer import term_freq
from bizportal.storage.store import PortalStore
from bizportal.types import ChunkDraft, ParsedDocument

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class IngestResult:
    tenant_id: str
    chunk_count: int


class IngestPipeline:
    """Rebuilds a tenant's knowledge base from its website HTML.

    Every call replaces the tenant's whole chunk set; there is no incremental
    update. The tenant is checked before the source is read so an unknown
    tenant never causes a file read or a storage write.
    """

    def __init__(
        self,
        store: PortalStore,
        parser: HtmlParser | None = None,
        chunker: SentencePackingChunker | None = None,
    ) -> None:
        self._store = store
        self._parser = parser or HtmlParser()
        self._chunker = chunker or SentencePackingChunker()

    def ingest_html(self, tenant_id: str, html: str) -> IngestResult:
        self._require_tenant(tenant_id)
        parsed = self._parser.parse(html, doc_id=tenant_id)
        return self._index(tenant_id, parsed)

    def ingest_path(self, tenant_id: str, path: str | Path) -> IngestResult:
        self._require_tenant(tenant_id)
        parsed = self._parser.parse_path(path, doc_id=tenant_id)
        return self._index(tenant_id, parsed)

    def build_drafts(self, text: str) -> list[ChunkDraft]:
        """Chunk plain text and attach each chunk's term frequencies."""
        return [
            ChunkDraft(text=chunk, term_frequencies=term_freq(chunk))
            for chunk in self._chunker.split(text)
        ]

    def _require_tenant(self, tenant_id: str) -> None:
        if self._store.find_tenant(tenant_id) is None:
            logger.warning("ingest.tenant_not_found", tenant_id=tenant_id)
            raise TenantNotFoundError(tenant_id)

    def _index(self, tenant_id: str, parsed: ParsedDocument) -> IngestResult:
        drafts = self.build_drafts(parsed.text)
        if not drafts:
            logger.warning("ingest.no_chunks", tenant_id=tenant_id, source=parsed.source)
            raise UnprocessableContentError("No chunks extracted from website content")

        count = self._store.replace_chunks(tenant_id, drafts)
        logger.info(
            "ingest.completed",
            tenant_id=tenant_id,
            source=parsed.source,
            chunk_count=count,
            text_chars=len(parsed.text),
        )
        return IngestResult(tenant_id=tenant_id, chunk_count=count)
