# expense_client/store.py
"""Process-wide expense state synchronized with the remote API.

The store owns the authenticated user, the transaction list for the month
last fetched, the preferred currency and ``loading``/``error`` flags.
Listeners registered with :meth:`ExpenseStore.subscribe` run after every
state change.

Every mutating operation flips ``loading`` on for its duration. Calls are
not queued: two overlapping mutations race and the last assignment to
``expenses`` wins. Failures are recorded in ``error`` and re-raised; nothing
is retried.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Union

from expense_client.core.models import (
    MonthlySummary,
    Transaction,
    UserProfile,
)
from expense_client.core.validator import validate_currency, validate_expense
from expense_client.errors import (
    ExpenseClientError,
    RemoteFailure,
    Unauthenticated,
    ValidationError,
)
from expense_client.gateway import ApiGateway
from expense_client.session import Session, SessionStore
from expense_client.utils import current_month, validate_month

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


@dataclass
class ExportArtifact:
    filename: str
    content: bytes
    content_type: str = "text/csv"

    def save(self, directory: Union[str, Path] = ".") -> Path:
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        out_path = target_dir / Path(self.filename).name
        out_path.write_bytes(self.content)
        return out_path


class ExpenseStore:
    def __init__(self, gateway: ApiGateway, session_store: SessionStore) -> None:
        self.gateway = gateway
        self.session_store = session_store
        self.user: Optional[UserProfile] = None
        self.expenses: List[Transaction] = []
        self.loading = False
        self.error: Optional[str] = None
        self.currency = "USD"
        self._listeners: List[Callable[[], None]] = []
        gateway.on_unauthenticated(self._session_expired)

    # -- observers ---------------------------------------------------------

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _set_loading(self, value: bool) -> None:
        self.loading = value
        self._notify()

    @contextmanager
    def _operation(self, action: str):
        self.error = None
        self._set_loading(True)
        try:
            yield
        except ExpenseClientError as exc:
            self.error = exc.message
            logger.warning("%s failed: %s", action, exc.message)
            raise
        finally:
            self._set_loading(False)

    # -- session -----------------------------------------------------------

    def _apply_auth_response(self, data) -> Session:
        if not isinstance(data, dict) or not data.get("token") or not data.get("user"):
            raise RemoteFailure("Malformed authentication response")
        user = UserProfile.from_api(data["user"])
        session = Session(token=data["token"], user=user)
        self.session_store.save(session)
        self.user = user
        self.currency = user.currency
        self._notify()
        return session

    def _session_expired(self) -> None:
        self.user = None
        self.expenses = []
        self._notify()

    def _require_user(self) -> UserProfile:
        session = self.session_store.current
        if session is None or not session.user.id:
            raise Unauthenticated("User not found")
        self.user = session.user
        return session.user

    def load_user(self) -> Optional[UserProfile]:
        """Restore user and currency from the persisted session, if any."""
        session = self.session_store.load()
        if session is None:
            return None
        self.user = session.user
        self.currency = session.currency
        self._notify()
        return self.user

    def login(self, email: str, password: str) -> UserProfile:
        with self._operation("login"):
            if not email or not password:
                raise ValidationError(
                    "Email and password are required",
                    errors={k: f"{k.capitalize()} is required"
                            for k, v in (("email", email), ("password", password)) if not v},
                )
            data = self.gateway.post(
                "/auth/login",
                json={"email": email, "password": password},
                auth=False,
                fallback="Login failed",
            )
            session = self._apply_auth_response(data)
            logger.info("Logged in as %s", session.user.email)
            self._fetch(current_month())
            return session.user

    def register(self, name: str, email: str, password: str) -> UserProfile:
        with self._operation("register"):
            missing = {k: f"{k.capitalize()} is required"
                       for k, v in (("name", name), ("email", email), ("password", password)) if not v}
            if missing:
                raise ValidationError("; ".join(missing.values()), errors=missing)
            data = self.gateway.post(
                "/auth/register",
                json={"name": name, "email": email, "password": password},
                auth=False,
                fallback="Registration failed",
            )
            return self._apply_auth_response(data).user

    def logout(self) -> None:
        self.session_store.clear()
        self.user = None
        self.expenses = []
        self.error = None
        self._notify()

    def update_user(self, profile: Mapping) -> UserProfile:
        with self._operation("update_user"):
            name = str(profile.get("name") or "").strip()
            if not name:
                raise ValidationError("Name is required", errors={"name": "Name is required"})
            data = self.gateway.put(
                "/auth/profile", json={"name": name}, fallback="Failed to update profile"
            )
            return self._apply_auth_response(data).user

    def update_currency(self, code: str) -> str:
        with self._operation("update_currency"):
            code = validate_currency(code)
            data = self.gateway.put(
                "/auth/currency", json={"currency": code}, fallback="Failed to update currency"
            )
            self._apply_auth_response(data)
            self.currency = code
            self._notify()
            return code

    # -- transactions ------------------------------------------------------

    def _fetch(self, month: str) -> List[Transaction]:
        month = validate_month(month)
        user = self._require_user()
        rows = self.gateway.get(
            "/expenses",
            params={"month": month, "userId": user.id},
            fallback="Failed to fetch expenses",
        )
        self.expenses = [Transaction.from_api(row) for row in rows or []]
        self._notify()
        return list(self.expenses)

    def fetch_expenses(self, month: str) -> List[Transaction]:
        """Replace the in-memory list with the server's transactions for ``month``."""
        with self._operation("fetch_expenses"):
            return self._fetch(month)

    def add_expense(self, data: Union[Mapping, Transaction]) -> Transaction:
        with self._operation("add_expense"):
            if isinstance(data, Transaction):
                data = data.to_payload()
            payload = validate_expense(data)
            created = Transaction.from_api(
                self.gateway.post("/expenses", json=payload, fallback="Failed to add expense")
            )
            self.expenses = self.expenses + [created]
            self._notify()
            return created

    def update_expense(self, expense_id: str, data: Union[Mapping, Transaction]) -> Transaction:
        with self._operation("update_expense"):
            if isinstance(data, Transaction):
                data = data.to_payload()
            payload = validate_expense(data)
            updated = Transaction.from_api(
                self.gateway.put(
                    f"/expenses/{expense_id}", json=payload, fallback="Failed to update expense"
                )
            )
            self.expenses = [updated if tx.id == expense_id else tx for tx in self.expenses]
            self._notify()
            return updated

    def delete_expense(self, expense_id: str) -> None:
        with self._operation("delete_expense"):
            self.gateway.delete(f"/expenses/{expense_id}", fallback="Failed to delete expense")
            # Only prune once the server confirmed the deletion.
            self.expenses = [tx for tx in self.expenses if tx.id != expense_id]
            self._notify()

    def get_monthly_summary(self, month: str) -> MonthlySummary:
        with self._operation("get_monthly_summary"):
            month = validate_month(month)
            user = self._require_user()
            data = self.gateway.get(
                "/expenses/summary",
                params={"month": month, "userId": user.id},
                fallback="Failed to load summary",
            )
            return MonthlySummary.from_api(data or {})

    def export_expenses(self, month: str) -> ExportArtifact:
        with self._operation("export_expenses"):
            month = validate_month(month)
            response = self.gateway.get(
                "/expenses/export",
                params={"month": month},
                raw=True,
                fallback="Failed to export expenses",
            )
            headers = getattr(response, "headers", None) or {}
            filename = f"expenses-{month}.csv"
            match = _FILENAME_RE.search(headers.get("Content-Disposition", ""))
            if match:
                filename = match.group(1).strip()
            content_type = headers.get("Content-Type", "text/csv").split(";")[0].strip()
            return ExportArtifact(filename=filename, content=response.content, content_type=content_type)
