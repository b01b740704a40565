"""Collection pipeline: normalization and run orchestration."""

from toolrep.collection.normalizer import RecordNormalizer, merge_capabilities, merge_records
from toolrep.collection.orchestrator import CollectionOrchestrator

__all__ = [
    "CollectionOrchestrator",
    "RecordNormalizer",
    "merge_capabilities",
    "merge_records",
]
