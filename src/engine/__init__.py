"""Engine Layer - Core Orchestration and Resource Management

This module provides the core engine layer for the SEO indexer, implementing:
- IndexingOrchestrator: Main entry point for domain events
- CredentialPool: Round-robin Google Indexing key pool with daily quotas
- UsageLedger: Daily per-engine statistics
- PacingConfig: Request spacing / chunking
- Results: Standardized per-engine and aggregate results
- CounterStoreAdapter: Error-swallowing store adapter
"""

from .credential_pool import Credential, CredentialPool, load_credentials
from .exceptions import IndexingAuthError, IndexingEngineException, IndexingTransportError
from .orchestrator import IndexingOrchestrator
from .pacing import PacingConfig
from .result import (
    AggregateResult,
    BatchReindexResult,
    BroadcastResult,
    BroadcastSubmission,
    ChangeType,
    EngineSummary,
    ErrorKind,
    IndexResult,
    PingResult,
)
from .store_adapter import CounterStore, CounterStoreAdapter
from .usage_ledger import DailyStats, EngineCounters, UsageLedger

__all__ = [
    "IndexingOrchestrator",
    "CredentialPool",
    "Credential",
    "load_credentials",
    "UsageLedger",
    "DailyStats",
    "EngineCounters",
    "PacingConfig",
    "CounterStore",
    "CounterStoreAdapter",
    # Results
    "AggregateResult",
    "BatchReindexResult",
    "BroadcastResult",
    "BroadcastSubmission",
    "ChangeType",
    "EngineSummary",
    "ErrorKind",
    "IndexResult",
    "PingResult",
    # Exceptions
    "IndexingEngineException",
    "IndexingAuthError",
    "IndexingTransportError",
]
