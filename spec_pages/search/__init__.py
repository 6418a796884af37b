"""Search index, artifact I/O, query engine, and client search session."""

from .artifacts import SearchArtifacts, load_search_artifacts, write_search_artifacts
from .engine import ResultView, SearchEngine, SearchOutcome, SearchResult
from .index import DocumentIndex, IndexArtifactError
from .session import SearchSession, SearchState

__all__ = [
    "DocumentIndex",
    "IndexArtifactError",
    "ResultView",
    "SearchArtifacts",
    "SearchEngine",
    "SearchOutcome",
    "SearchResult",
    "SearchSession",
    "SearchState",
    "load_search_artifacts",
    "write_search_artifacts",
]
