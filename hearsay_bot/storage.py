"""SQLite storage for chat messages, users and opt-outs."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = "data/database.db"

_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS messages(
    id INTEGER PRIMARY KEY,
    nick TEXT NOT NULL,
    channel TEXT NOT NULL,
    message TEXT NOT NULL,
    time DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY(nick) REFERENCES users(nick) ON DELETE CASCADE
    )""",
    "CREATE INDEX IF NOT EXISTS idx_nick ON messages(nick)",
    """CREATE TABLE IF NOT EXISTS users(
    nick TEXT PRIMARY KEY,
    registered DATETIME DEFAULT CURRENT_TIMESTAMP,
    opt BOOL DEFAULT TRUE,
    deletion DATETIME
    )""",
)


@dataclass(frozen=True)
class Message:
    """One chat line seen in a channel."""

    nick: str
    content: str
    channel: str
    timestamp: datetime


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def init_database(path: str | Path = DEFAULT_DATABASE_PATH) -> sqlite3.Connection:
    """Open the database at *path* and create the tables it needs."""
    db = sqlite3.connect(str(path), check_same_thread=False)
    try:
        for statement in _SCHEMA:
            db.execute(statement)
        db.commit()
        db.execute("PRAGMA foreign_keys = ON")
    except sqlite3.Error:
        db.close()
        raise
    return db


def submit_messages(messages: Iterable[Message], db: sqlite3.Connection) -> None:
    """Store *messages* in one transaction, registering unseen nicks.

    Nothing is stored if any message fails.
    """
    with db:
        for message in messages:
            stamp = _format_time(message.timestamp)
            db.execute(
                "INSERT OR IGNORE INTO users(nick, registered, opt, deletion) "
                "VALUES (?, ?, ?, ?)",
                (message.nick, stamp, True, None),
            )
            db.execute(
                "INSERT INTO messages (nick, channel, message, time) VALUES (?, ?, ?, ?)",
                (message.nick, message.channel, message.content, stamp),
            )


class OptOutTracker:
    """In-memory set of nicks that opted out, to spare database lookups."""

    def __init__(self, nicks: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._nicks = set(nicks)

    def is_opted_out(self, nick: str) -> bool:
        with self._lock:
            return nick in self._nicks

    def load(self, db: sqlite3.Connection) -> None:
        """Add every nick the database marks as opted out."""
        rows = db.execute("SELECT nick FROM users WHERE opt = 0").fetchall()
        with self._lock:
            self._nicks.update(nick for (nick,) in rows)

    def opt_out(self, nick: str) -> None:
        with self._lock:
            self._nicks.add(nick)

    def opt_in(self, nick: str) -> None:
        with self._lock:
            self._nicks.discard(nick)

    def __contains__(self, nick: object) -> bool:
        with self._lock:
            return nick in self._nicks

    def __len__(self) -> int:
        with self._lock:
            return len(self._nicks)