"""
Client-side mirror of the transactions API.

TransactionSyncController keeps a local copy of the server list, taken from
the last successful fetch, and recomputes the summary (count, total, average)
every time that copy changes. Mutations are reported as successful only
after the server confirms them, and every mutation is followed by a full
re-fetch. Nothing is merged on the client.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx

from ..api.logging_setup import get_logger

log = get_logger(__name__)

DEFAULT_REFRESH_INTERVAL = 30.0


@dataclass(frozen=True)
class Summary:
    count: int
    total: float
    average: float


def compute_summary(transactions: List[Dict[str, Any]]) -> Summary:
    """Count, sum and mean of `amount` over the list; the mean of nothing is 0."""
    count = len(transactions)
    total = sum(float(t.get("amount", 0)) for t in transactions)
    return Summary(count=count, total=total, average=total / count if count else 0.0)


def format_amount(amount: float) -> str:
    return f"{abs(amount):.2f}"


def format_date(value: str) -> str:
    """Render an ISO8601 timestamp as e.g. 'Jan 1, 2024'."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


@dataclass
class UIState:
    """
    Everything the view renders from.

    current_edit_id holds the single edit in progress; opening another edit
    replaces it.
    """

    transactions: List[Dict[str, Any]] = field(default_factory=list)
    summary: Summary = field(default_factory=lambda: Summary(0, 0.0, 0.0))
    current_edit_id: Optional[str] = None
    loading: bool = False
    error: Optional[str] = None
    notice: Optional[str] = None


Renderer = Callable[[UIState], None]


def render_rows(state: UIState) -> List[str]:
    """One display line per transaction: name, formatted date and signed amount."""
    rows = []
    for t in state.transactions:
        amount = float(t.get("amount", 0))
        sign = "-" if amount < 0 else ""
        when = format_date(t["date"]) if t.get("date") else ""
        rows.append(f"{t.get('name', '')} | {when} | {sign}{format_amount(amount)}")
    return rows


def log_renderer(state: UIState) -> None:
    for row in render_rows(state):
        log.info("transaction_row %s", row)
    log.info(
        "transactions_rendered count=%s total=%s average=%s",
        state.summary.count,
        format_amount(state.summary.total),
        format_amount(state.summary.average),
    )


class SyncError(RuntimeError):
    """The server refused or failed a request."""


# PUBLIC_INTERFACE
class TransactionSyncController:
    """
    Drive the transactions API from a client and keep UIState in step with it.

    Args:
        http: An httpx.Client whose base_url points at the API.
        render: Called with the state after every change.
        refresh_interval: Seconds between background re-fetches.
    """

    def __init__(
        self,
        http: httpx.Client,
        render: Renderer = log_renderer,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
    ) -> None:
        self._http = http
        self._render = render
        self.refresh_interval = refresh_interval
        self.state = UIState()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._timer: Optional[threading.Thread] = None

    @classmethod
    def connect(cls, base_url: str, timeout: float = 5.0, **kwargs: Any) -> "TransactionSyncController":
        return cls(httpx.Client(base_url=base_url, timeout=timeout), **kwargs)

    def close(self) -> None:
        self.stop_auto_refresh()
        self._http.close()

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self._http.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            raise SyncError(f"Server unreachable: {exc}") from exc
        try:
            body = response.json()
        except ValueError as exc:
            raise SyncError(f"Unexpected response ({response.status_code})") from exc
        if not body.get("success"):
            details = body.get("errors") or []
            message = body.get("message") or f"Request failed ({response.status_code})"
            raise SyncError(f"{message}: {', '.join(details)}" if details else message)
        return body

    def _set_error(self, message: str) -> None:
        self.state.error = message
        self.state.notice = None
        self._render(self.state)

    def _set_notice(self, message: str) -> None:
        self.state.notice = message
        self.state.error = None
        self._render(self.state)

    def load(self) -> bool:
        """
        Fetch the full list and replace the local copy with it.

        Returns True on success. On failure the previous list is kept and
        state.error says what went wrong.
        """
        self.state.loading = True
        try:
            body = self._request("GET", "/transactions")
        except SyncError as exc:
            log.warning("transactions_load_failed error=%s", exc)
            self.state.loading = False
            self._set_error("Failed to load transactions. Make sure the server is running.")
            return False

        transactions = list(body.get("data") or [])
        with self._lock:
            self.state.transactions = transactions
            self.state.summary = compute_summary(transactions)
            self.state.loading = False
            self.state.error = None
        self._render(self.state)
        return True

    def add(self, name: str, amount: Any, date: Optional[str]) -> bool:
        """Create a transaction, then re-fetch. Incomplete input never reaches the server."""
        name = (name or "").strip()
        if not name or amount in (None, "") or not date:
            self._set_error("Please fill in all fields")
            return False
        try:
            self._request("POST", "/transactions", {"name": name, "amount": amount, "date": date})
        except SyncError as exc:
            self._set_error(f"Failed to add transaction: {exc}")
            return False
        self._set_notice("Transaction added successfully!")
        self.load()
        return True

    def open_edit(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        """
        Start editing a transaction from the local list and return it.
        Unknown ids leave the edit slot untouched and return None.
        """
        for transaction in self.state.transactions:
            if transaction.get("id") == transaction_id:
                self.state.current_edit_id = transaction_id
                return dict(transaction)
        return None

    def close_edit(self) -> None:
        self.state.current_edit_id = None

    def submit_edit(self, name: str, amount: Any, date: Optional[str]) -> bool:
        """Send the open edit. Without an open edit nothing happens and False is returned."""
        edit_id = self.state.current_edit_id
        if edit_id is None:
            return False
        payload = {"name": (name or "").strip(), "amount": amount, "date": date}
        try:
            self._request("PUT", f"/transactions/{edit_id}", payload)
        except SyncError as exc:
            self._set_error(f"Failed to update transaction: {exc}")
            return False
        self._set_notice("Transaction updated successfully!")
        self.close_edit()
        self.load()
        return True

    def delete(self, transaction_id: str) -> bool:
        try:
            self._request("DELETE", f"/transactions/{transaction_id}")
        except SyncError as exc:
            self._set_error(f"Failed to delete transaction: {exc}")
            return False
        self._set_notice("Transaction deleted successfully!")
        self.load()
        return True

    def _auto_refresh(self) -> None:
        while not self._stop.wait(self.refresh_interval):
            self.load()

    def start_auto_refresh(self) -> None:
        """Re-fetch every refresh_interval seconds in a background thread until stopped."""
        if self._timer is not None and self._timer.is_alive():
            return
        self._stop.clear()
        self._timer = threading.Thread(target=self._auto_refresh, name="transactions-refresh", daemon=True)
        self._timer.start()

    def stop_auto_refresh(self) -> None:
        self._stop.set()
        if self._timer is not None:
            self._timer.join(timeout=self.refresh_interval + 1)
            self._timer = None
