"""Layers package initialization."""
from affiliate_scout.layers.merger import FactMerger, merge_unique
from affiliate_scout.layers.prober import SubjectProber
from affiliate_scout.layers.orchestrator import BatchOrchestrator, LogProgressSink, ProgressSink
from affiliate_scout.layers.maintenance import SubjectResetter

__all__ = [
    "BatchOrchestrator",
    "FactMerger",
    "LogProgressSink",
    "ProgressSink",
    "SubjectProber",
    "SubjectResetter",
    "merge_unique",
]
