"""Adlist audit: duplicate detection, safe rewrite and reachability probing."""

from .orchestrator import AuditOrchestrator, AuditReport, AuditStage, DedupOutcome, run_audit
from .prober import HttpProber, ProbeResult, Prober, probe_sources
from .store import ListSource, ListStore, deduplicated_lines, find_duplicates, is_valid_adlist_url

__all__ = [
    "AuditOrchestrator",
    "AuditReport",
    "AuditStage",
    "DedupOutcome",
    "HttpProber",
    "ListSource",
    "ListStore",
    "ProbeResult",
    "Prober",
    "deduplicated_lines",
    "find_duplicates",
    "is_valid_adlist_url",
    "probe_sources",
    "run_audit",
]
