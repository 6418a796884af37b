"""Rendering, extraction, and per-version build orchestration for spec_pages."""

from .catalog import CatalogResult, PageCatalogBuilder, SourceFile
from .extensions import HeadingAnchorExtension, InteractiveBlockExtension
from .extractor import RecordExtractor
from .models import PageRecord, ProposalMeta, SearchDocument, SearchMapEntry, Section
from .renderer import HtmlContentRenderer

__all__ = [
    "CatalogResult",
    "HeadingAnchorExtension",
    "HtmlContentRenderer",
    "InteractiveBlockExtension",
    "PageCatalogBuilder",
    "PageRecord",
    "ProposalMeta",
    "RecordExtractor",
    "SearchDocument",
    "SearchMapEntry",
    "Section",
    "SourceFile",
]
