"""Shared fakes for the expense API and for debounce timers.

``FakeExpenseServer`` stands in for ``requests.Session``: the gateway calls
its ``request`` method and gets back ``FakeResponse`` objects produced from
an in-memory user and expense table, so store and view tests exercise the
real request/response handling without a network.
"""

from __future__ import annotations

import csv
import io
import json
from urllib.parse import urlsplit

import pytest
import requests

from expense_client.gateway import ApiGateway
from expense_client.session import SessionStore
from expense_client.store import ExpenseStore

BASE_URL = "http://testserver"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=None, headers=None):
        self.status_code = status_code
        self._payload = payload
        if content is None:
            content = json.dumps(payload).encode("utf-8") if payload is not None else b""
        self.content = content
        self.headers = headers or {}

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeExpenseServer:
    def __init__(self):
        self.users = {}
        self.tokens = {}
        self.expenses = {}
        self.calls = []
        self.network_down = False
        self.force_status = None
        self._next_id = 1

    # -- seeding -----------------------------------------------------------

    def add_user(self, email, password, name="Alice", currency="USD", user_id=None):
        user = {
            "id": user_id or f"u{len(self.users) + 1}",
            "name": name,
            "email": email,
            "password": password,
            "currency": currency,
        }
        self.users[email] = user
        return user

    def seed_expense(self, user_id, description, amount, category, date, type="expense"):
        record = {
            "_id": f"exp{self._next_id}",
            "user": user_id,
            "description": description,
            "amount": amount,
            "category": category,
            "date": f"{date}T00:00:00.000Z",
            "type": type,
        }
        self._next_id += 1
        self.expenses[record["_id"]] = record
        return record

    def calls_to(self, method, path):
        return [c for c in self.calls if c["method"] == method and c["path"] == path]

    # -- helpers -----------------------------------------------------------

    def _issue(self, user):
        token = f"token-{user['id']}-{len(self.tokens) + 1}"
        self.tokens[token] = user["email"]
        public = {k: v for k, v in user.items() if k != "password"}
        return FakeResponse(200, {"token": token, "user": public})

    def _current_user(self, headers):
        auth = (headers or {}).get("Authorization", "")
        if not auth.startswith("Bearer "):
            return None
        email = self.tokens.get(auth[7:])
        return self.users.get(email) if email else None

    def _month_rows(self, user_id, month):
        return [
            {k: v for k, v in row.items() if k != "user"}
            for row in self.expenses.values()
            if row["user"] == user_id and row["date"].startswith(month)
        ]

    # -- requests.Session interface ---------------------------------------

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        path = urlsplit(url).path.split("/api", 1)[1]
        self.calls.append({
            "method": method,
            "path": path,
            "params": dict(params or {}),
            "json": json,
            "headers": dict(headers or {}),
            "timeout": timeout,
        })
        if self.network_down:
            raise requests.ConnectionError("connection refused")
        if self.force_status is not None:
            return FakeResponse(self.force_status, {"message": "Server error"})

        if path == "/auth/login" and method == "POST":
            user = self.users.get(json.get("email"))
            if not user or user["password"] != json.get("password"):
                return FakeResponse(401, {"message": "Invalid credentials"})
            return self._issue(user)
        if path == "/auth/register" and method == "POST":
            if json["email"] in self.users:
                return FakeResponse(400, {"message": "User already exists"})
            return self._issue(self.add_user(json["email"], json["password"], name=json["name"]))

        user = self._current_user(headers)
        if user is None:
            return FakeResponse(401, {"message": "Not authorized, token failed"})

        if path == "/auth/profile" and method == "PUT":
            user["name"] = json["name"]
            return self._issue(user)
        if path == "/auth/currency" and method == "PUT":
            user["currency"] = json["currency"]
            return self._issue(user)

        if path == "/expenses" and method == "GET":
            return FakeResponse(200, self._month_rows(params["userId"], params["month"]))
        if path == "/expenses" and method == "POST":
            record = self.seed_expense(user["id"], **json)
            return FakeResponse(201, {k: v for k, v in record.items() if k != "user"})
        if path == "/expenses/summary" and method == "GET":
            return FakeResponse(200, self._summary(params["userId"], params["month"]))
        if path == "/expenses/export" and method == "GET":
            return self._export(user["id"], params["month"])

        expense_id = path.rsplit("/", 1)[1]
        record = self.expenses.get(expense_id)
        if record is None or record["user"] != user["id"]:
            return FakeResponse(404, {"message": "Expense not found"})
        if method == "PUT":
            record.update(json)
            record["date"] = f"{json['date']}T00:00:00.000Z"
            return FakeResponse(200, {k: v for k, v in record.items() if k != "user"})
        if method == "DELETE":
            del self.expenses[expense_id]
            return FakeResponse(204)
        return FakeResponse(405, {"message": "Method not allowed"})

    def _summary(self, user_id, month):
        rows = self._month_rows(user_id, month)
        income = sum(r["amount"] for r in rows if r["type"] == "income")
        expenses = sum(r["amount"] for r in rows if r["type"] == "expense")
        breakdown = {}
        for r in rows:
            if r["type"] == "expense":
                breakdown[r["category"]] = breakdown.get(r["category"], 0) + r["amount"]
        return {
            "totalIncome": income,
            "totalExpenses": expenses,
            "balance": income - expenses,
            "categoryBreakdown": [{"_id": k, "total": v} for k, v in breakdown.items()],
        }

    def _export(self, user_id, month):
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(["Date", "Description", "Category", "Type", "Amount"])
        for r in self._month_rows(user_id, month):
            writer.writerow([r["date"][:10], r["description"], r["category"], r["type"], r["amount"]])
        return FakeResponse(
            200,
            content=buf.getvalue().encode("utf-8"),
            headers={
                "Content-Type": "text/csv; charset=utf-8",
                "Content-Disposition": f'attachment; filename="expenses-{month}.csv"',
            },
        )


class FakeTimer:
    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args)


class TimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, function, args=None):
        timer = FakeTimer(interval, function, args or ())
        self.timers.append(timer)
        return timer

    @property
    def active(self):
        return [t for t in self.timers if t.started and not t.cancelled]

    def fire_all(self):
        for timer in self.active:
            timer.fire()


@pytest.fixture
def server():
    srv = FakeExpenseServer()
    srv.add_user("a@b.com", "x", name="Alice", currency="EUR", user_id="u1")
    return srv


@pytest.fixture
def session_store(tmp_path):
    return SessionStore(tmp_path / "session.json")


@pytest.fixture
def gateway(session_store, server):
    return ApiGateway(session_store, BASE_URL, http=server)


@pytest.fixture
def store(gateway, session_store):
    return ExpenseStore(gateway, session_store)


@pytest.fixture
def logged_in_store(store):
    store.login("a@b.com", "x")
    return store


@pytest.fixture
def timers():
    return TimerFactory()
