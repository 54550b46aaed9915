"""
Client for the transactions API: mirrors the server list and its summary.
"""
from .sync import Summary, SyncError, TransactionSyncController, UIState, compute_summary, render_rows

__all__ = ["Summary", "SyncError", "TransactionSyncController", "UIState", "compute_summary", "render_rows"]
