# expense_client/session.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from expense_client.core.models import UserProfile

logger = logging.getLogger(__name__)


@dataclass
class Session:
    token: str
    user: UserProfile

    @property
    def currency(self) -> str:
        return self.user.currency or "USD"


class SessionStore:
    """Persisted token and profile, retained until logout or a 401."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()
        self._session: Optional[Session] = None
        self._loaded = False

    @property
    def current(self) -> Optional[Session]:
        if not self._loaded:
            self.load()
        return self._session

    @property
    def token(self) -> Optional[str]:
        session = self.current
        return session.token if session else None

    def load(self) -> Optional[Session]:
        self._loaded = True
        self._session = None
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as fp:
                data = json.load(fp)
            token = data["token"]
            user = UserProfile.from_api(data["user"])
        except (json.JSONDecodeError, OSError, KeyError, TypeError, AttributeError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return None
        if not token:
            return None
        self._session = Session(token=token, user=user)
        return self._session

    def save(self, session: Session) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"token": session.token, "user": session.user.to_dict()}
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            json.dump(payload, fp, indent=2)
        self._session = session
        self._loaded = True

    def clear(self) -> None:
        self._session = None
        self._loaded = True
        self.path.unlink(missing_ok=True)
