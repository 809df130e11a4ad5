"""
Data Ingestion Module
"""
from .sources import (
    DatabaseRecordSource,
    EventLogSource,
    FetchQuery,
    FetchResult,
    RecordSource,
    SourceCapabilities,
    SourceChain,
)

__all__ = [
    "DatabaseRecordSource",
    "EventLogSource",
    "FetchQuery",
    "FetchResult",
    "RecordSource",
    "SourceCapabilities",
    "SourceChain",
]
