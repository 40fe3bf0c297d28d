"""Durable state: quota counter, per-sheet progress and result logs."""
from places_enricher.state.quota_tracker import QuotaTracker
from places_enricher.state.progress_tracker import ProgressTracker
from places_enricher.state.result_store import ResultStore

__all__ = ["QuotaTracker", "ProgressTracker", "ResultStore"]
