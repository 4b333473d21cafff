"""Chat commands and the scheduled purge of user data."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone

from .config import Config
from .storage import OptOutTracker

log = logging.getLogger(__name__)

PURGED_MESSAGE = "Your data has been successfully purged."

Handler = Callable[[Sequence[str], str], str]


@dataclass(frozen=True)
class Command:
    """A command's handler together with its help text."""

    handler: Handler
    description: str


class CommandSet:
    """The commands the bot answers, bound to one database."""

    def __init__(self, db: sqlite3.Connection, config: Config, opt_outs: OptOutTracker) -> None:
        self._db = db
        self._config = config
        self._opt_outs = opt_outs
        prefix = config.command_prefix
        self._commands: dict[str, Command] = {
            "attribute": Command(
                self.attribute,
                f"Attribute text to a chatter. Usage: {prefix}attribute <message>",
            ),
            "opt": Command(
                self.opt,
                f"Opt in or out from data collection. Usage: {prefix}opt <(in|out)>",
            ),
            "forget": Command(
                self.forget,
                f"Permanently purge all your data. Usage: {prefix}forget",
            ),
            "unforget": Command(
                self.unforget,
                f"Cancel a scheduled data deletion. Usage: {prefix}unforget",
            ),
            "help": Command(
                self.help,
                f"Get information on a command. Usage: {prefix}help <command>",
            ),
        }

    def names(self) -> list[str]:
        return list(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def dispatch(self, name: str, args: Sequence[str], author: str) -> str:
        """Run command *name* for *author*; raise KeyError if there is none."""
        try:
            command = self._commands[name]
        except KeyError:
            raise KeyError(name) from None
        return command.handler(list(args), author)

    def attribute(self, args: Sequence[str], author: str) -> str:
        return f"{author} is a nerd."

    def opt(self, args: Sequence[str], author: str) -> str:
        if len(args) != 1 or args[0] not in ("in", "out"):
            return (
                f"{author}: Improper argument(s). See "
                f"{self._config.command_prefix}help opt for usage."
            )
        opting_in = args[0] == "in"
        with self._db:
            cursor = self._db.execute(
                "UPDATE users SET opt = ? WHERE nick = ?", (opting_in, author)
            )
        if cursor.rowcount == 0:
            log.info("In opt command: user not found.")
            return f"{author}: Your nick was not found in the database."

        if opting_in:
            self._opt_outs.opt_in(author)
        else:
            self._opt_outs.opt_out(author)
        return f"{author}: You have successfully opted {args[0]}."

    def forget(self, args: Sequence[str], author: str) -> str:
        try:
            row = self._db.execute(
                "SELECT deletion FROM users WHERE nick = ?", (author,)
            ).fetchone()
        except sqlite3.Error as exc:
            log.error("Failed to query deletion time: %s", exc)
            return f"{author}: The requested action was met with an error."
        if row is None:
            return f"{author}: Your nick was not found in the database."
        if row[0] is not None:
            return f"{author}: Your data is already scheduled for deletion."

        days = self._config.deletion_days
        deletion_day = (datetime.now(timezone.utc) + timedelta(days=days)).date()
        try:
            with self._db:
                self._db.execute(
                    "UPDATE users SET deletion = ? WHERE nick = ?",
                    (f"{deletion_day.isoformat()} 00:00:00", author),
                )
        except sqlite3.Error as exc:
            log.error("Failed to schedule deletion: %s", exc)
            return f"{author}: The requested action was met with an error."

        return (
            f"{author}: Your data is scheduled for deletion and will complete in "
            f"{days} days. To cancel this request, type +unforget"
        )

    def unforget(self, args: Sequence[str], author: str) -> str:
        try:
            with self._db:
                cursor = self._db.execute(
                    "UPDATE users SET deletion = NULL WHERE nick = ? AND deletion IS NOT NULL",
                    (author,),
                )
        except sqlite3.Error as exc:
            log.error("Failed to serve unforget request for nick %s: %s", author, exc)
            return f"{author}: The requested action was met with an error."
        if cursor.rowcount == 0:
            return (
                f"{author}: You have no deletion scheduled or were not found in the database."
            )
        return f"{author}: You have successfully cancelled your deletion request."

    def help(self, args: Sequence[str], author: str) -> str:
        if not args:
            return (
                f"{author}: Available commands are {', '.join(self._commands)}. "
                f"Usage: {self._config.command_prefix}help [command]"
            )
        command = self._commands.get(args[0])
        if command is not None:
            return f"{author}: {command.description}"
        return f"{author}: No such command {args[0]}."


def execute_deletions(db: sqlite3.Connection) -> list[str]:
    """Delete every user whose deletion falls on today (UTC); return their nicks."""
    try:
        rows = db.execute(
            "SELECT nick FROM users WHERE DATE(deletion) = DATE('now')"
        ).fetchall()
    except sqlite3.Error as exc:
        log.error("Failed to query today's deletions: %s", exc)
        return []

    deleted = []
    for (nick,) in rows:
        try:
            with db:
                db.execute("DELETE FROM users WHERE nick = ?", (nick,))
        except sqlite3.Error as exc:
            log.error("Failed to delete nick from users table: %s", exc)
        else:
            deleted.append(nick)
    return deleted


def _seconds_until_next_run(now: datetime) -> float:
    now = now.astimezone(timezone.utc)
    next_run = datetime.combine(now.date(), time.min, tzinfo=timezone.utc) + timedelta(days=1)
    return (next_run - now).total_seconds()


def deletion_scheduler(
    db: sqlite3.Connection,
    notify: Callable[[str, str], object],
    stop: threading.Event,
) -> None:
    """Purge due users each UTC midnight and notify them, until *stop* is set."""
    while True:
        delay = _seconds_until_next_run(datetime.now(timezone.utc))
        log.info("Next deletion cycle in %.0f seconds", delay)
        if stop.wait(delay):
            log.info("Shutting down scheduler.")
            return
        for nick in execute_deletions(db):
            notify(nick, PURGED_MESSAGE)