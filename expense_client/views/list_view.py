# expense_client/views/list_view.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, List, Optional

from expense_client.core.models import Transaction
from expense_client.errors import ExpenseClientError
from expense_client.store import ExpenseStore
from expense_client.utils import current_month, validate_month

logger = logging.getLogger(__name__)

TYPE_FILTERS = ("all", "expense", "income")
SORT_FIELDS = ("date", "amount", "category")
SORT_ORDERS = ("asc", "desc")
DEFAULT_DEBOUNCE_SECONDS = 0.5

DELETE_PROMPT = "Are you sure you want to delete this expense?"


class Debouncer:
    """
    Collapse rapid calls into one: each call cancels the pending timer and
    schedules ``func`` again after ``wait`` seconds with the latest arguments.
    """

    def __init__(self, func: Callable, wait: float, timer_factory: Callable = threading.Timer) -> None:
        self.func = func
        self.wait = wait
        self.timer_factory = timer_factory
        self._timer = None
        self._token = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def __call__(self, *args) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            token = object()
            timer = self.timer_factory(self.wait, self._fire, (token,) + args)
            timer.daemon = True
            self._timer = timer
            self._token = token
        timer.start()

    def _fire(self, token, *args) -> None:
        # A superseded timer may already be running when it is cancelled.
        with self._lock:
            if token is not self._token:
                return
            self._timer = None
            self._token = None
        self.func(*args)

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._token = None


def filter_transactions(
    transactions: Iterable[Transaction],
    type_filter: str = "all",
    category: str = "all",
    search: str = "",
) -> List[Transaction]:
    result = list(transactions)
    if type_filter != "all":
        result = [tx for tx in result if tx.type == type_filter]
    if category != "all":
        result = [tx for tx in result if tx.category == category]
    if search:
        term = search.lower()
        result = [
            tx for tx in result
            if term in tx.description.lower() or term in tx.category.lower()
        ]
    return result


_SORT_KEYS = {
    "date": lambda tx: tx.date,
    "amount": lambda tx: tx.amount,
    "category": lambda tx: tx.category.casefold(),
}


def sort_transactions(transactions: Iterable[Transaction], sort_by: str = "date", order: str = "desc") -> List[Transaction]:
    """Stable sort; equal keys keep their incoming order in both directions."""
    if sort_by not in _SORT_KEYS:
        raise ValueError(f"Unsupported sort field '{sort_by}'.")
    if order not in SORT_ORDERS:
        raise ValueError(f"Unsupported sort order '{order}'.")
    return sorted(transactions, key=_SORT_KEYS[sort_by], reverse=(order == "desc"))


class ListViewModel:
    """
    Filtered, sorted projection of the store's transactions for one month.

    Debounced month fetches run on the timer's thread, so store listeners and
    ``visible`` updates triggered by them happen off the caller's thread. Only
    one fetch is outstanding per view; callers that need a single-threaded
    model should call :meth:`refresh` instead.
    """

    def __init__(
        self,
        store: ExpenseStore,
        month: Optional[str] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        timer_factory: Callable = threading.Timer,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.store = store
        self.month = validate_month(month) if month else current_month()
        self.type_filter = "all"
        self.category_filter = "all"
        self.search = ""
        self.sort_by = "date"
        self.sort_order = "desc"
        self.error: Optional[str] = None
        self.on_error = on_error
        self.visible: List[Transaction] = []
        self._fetch_later = Debouncer(self._fetch_month, debounce_seconds, timer_factory)
        self._unsubscribe = store.subscribe(self._recompute)
        self._recompute()

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        """Schedule the initial fetch for the selected month."""
        self._fetch_later(self.month)

    def close(self) -> None:
        self._fetch_later.cancel()
        self._unsubscribe()

    def refresh(self) -> List[Transaction]:
        """Fetch the selected month now, bypassing the debounce."""
        self._fetch_later.cancel()
        self.store.fetch_expenses(self.month)
        return self.visible

    def _fetch_month(self, month: str) -> None:
        try:
            self.store.fetch_expenses(month)
            self.error = None
        except ExpenseClientError as exc:
            self.error = exc.message
            logger.error("Error fetching expenses for %s: %s", month, exc.message)
            if self.on_error:
                self.on_error("Failed to fetch expenses")

    # -- state changes -----------------------------------------------------

    def select_month(self, month: str) -> None:
        self.month = validate_month(month)
        self._fetch_later(self.month)

    def set_filter(self, field: str, value: str) -> None:
        if field == "type":
            if value not in TYPE_FILTERS:
                raise ValueError(f"Unsupported type filter '{value}'.")
            self.type_filter = value
        elif field == "category":
            self.category_filter = value or "all"
        elif field == "search":
            self.search = value or ""
        else:
            raise ValueError(f"Unknown filter '{field}'.")
        self._recompute()

    def sort(self, field: str, order: Optional[str] = None) -> None:
        """
        Sort by ``field``. Without an explicit ``order``, choosing the current
        field again flips the direction and a new field starts ascending.
        """
        if field not in SORT_FIELDS:
            raise ValueError(f"Unsupported sort field '{field}'.")
        if order is None:
            if field == self.sort_by:
                order = "asc" if self.sort_order == "desc" else "desc"
            else:
                order = "asc"
        elif order not in SORT_ORDERS:
            raise ValueError(f"Unsupported sort order '{order}'.")
        self.sort_by = field
        self.sort_order = order
        self._recompute()

    def _recompute(self) -> None:
        filtered = filter_transactions(
            self.store.expenses, self.type_filter, self.category_filter, self.search
        )
        self.visible = sort_transactions(filtered, self.sort_by, self.sort_order)

    @property
    def categories(self) -> List[str]:
        """Categories present in the current list, in first-seen order."""
        return list(dict.fromkeys(tx.category for tx in self.store.expenses))

    # -- actions -----------------------------------------------------------

    def delete(self, expense_id: str, confirm: Callable[[str], bool]) -> bool:
        """
        Delete after ``confirm`` approves, then re-fetch the month so that any
        server-side effects of the deletion are reflected. Returns False when
        the user declined.
        """
        if not confirm(DELETE_PROMPT):
            return False
        self.store.delete_expense(expense_id)
        self.store.fetch_expenses(self.month)
        return True
