"""IRC connection that records channel chatter and answers commands."""

from __future__ import annotations

import logging
import queue
import socket
import sqlite3
import ssl
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .commands import CommandSet, deletion_scheduler
from .config import Config
from .parsing import channel_from_invite, channel_from_raw, content_from_raw, nick_from_raw
from .storage import Message, OptOutTracker, submit_messages

log = logging.getLogger(__name__)

BOT_NICK = "hearsay"
VERSION_REPLY = "Bot"
DEFAULT_PORT = 6697
_CTCP = "\x01"


@dataclass(frozen=True)
class IrcLine:
    """One line received from the server, split into its parts."""

    raw: str
    prefix: str
    command: str
    params: tuple[str, ...]
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def nick(self) -> str:
        return self.prefix.split("!", 1)[0]

    @property
    def trailing(self) -> str:
        return self.params[-1] if self.params else ""


def parse_line(raw: str) -> IrcLine:
    """Split a raw IRC line into prefix, command and parameters."""
    raw = raw.rstrip("\r\n")
    prefix, rest = "", raw
    if rest.startswith(":"):
        prefix, _, rest = rest[1:].partition(" ")
    head, sep, trailing = (" " + rest.lstrip(" ")).partition(" :")
    words = head.split()
    if not words:
        raise ValueError(f"no command in {raw!r}")
    params = words[1:] + ([trailing] if sep else [])
    return IrcLine(raw=raw, prefix=prefix, command=words[0].upper(), params=tuple(params))


class HearsayBot:
    """Joins a channel, stores what opted-in chatters say and runs their commands."""

    def __init__(
        self,
        server: str,
        channel: str,
        db: sqlite3.Connection,
        config: Config,
        opt_outs: OptOutTracker,
    ) -> None:
        self.server = server
        self.channel = channel
        self.db = db
        self.config = config
        self.opt_outs = opt_outs
        self.commands = CommandSet(db, config, opt_outs)
        self.outgoing: queue.Queue[str | None] = queue.Queue()
        self.shutdown = threading.Event()
        self.pool: list[Message] = []

    def send(self, line: str) -> None:
        self.outgoing.put(line.replace("\r", " ").replace("\n", " "))

    def privmsg(self, target: str, text: str) -> None:
        self.send(f"PRIVMSG {target} :{text}")

    def take_outgoing(self) -> list[str]:
        """Remove and return every line waiting to be sent."""
        lines = []
        while not self.outgoing.empty():
            line = self.outgoing.get_nowait()
            if line is not None:
                lines.append(line)
        return lines

    def handle_line(self, raw: str) -> None:
        """React to one line from the server."""
        line = parse_line(raw)
        if line.command == "PING":
            self.send(f"PONG :{line.trailing}")
        elif line.command == "001":
            self.on_connected()
        elif line.command == "PRIVMSG" and line.trailing.startswith(_CTCP):
            if line.trailing.strip(_CTCP).split(" ", 1)[0].upper() == "VERSION":
                self.send(f"NOTICE {line.nick} :{_CTCP}VERSION {VERSION_REPLY}{_CTCP}")
        elif line.command == "PRIVMSG":
            self.on_privmsg(line)
        elif line.command == "INVITE":
            self.on_invite(line)

    def on_connected(self) -> None:
        self.send(f"JOIN {self.channel}")
        self.send(f"MODE {BOT_NICK} {self.config.bot_mode}")
        self.send(f"AWAY :{self.config.command_prefix}help for command list.")
        log.info("Joined %s", self.channel)
        log.info("Loading deletion scheduler...")
        threading.Thread(
            target=deletion_scheduler,
            args=(self.db, self.privmsg, self.shutdown),
            daemon=True,
        ).start()

    def on_privmsg(self, line: IrcLine) -> None:
        author = nick_from_raw(line.raw)
        content = content_from_raw(line.raw)
        channel = channel_from_raw(line.raw)
        prefix = self.config.command_prefix

        if content.startswith(prefix):
            words = content.split(" ")
            name = words[0].split(prefix)[1]
            log.info("Received command %s by %s.", name, author)
            target = channel or author
            if name not in self.commands:
                self.privmsg(target, f"No such command: {name}")
            else:
                try:
                    self.privmsg(target, self.commands.dispatch(name, words[1:], author))
                except sqlite3.Error as exc:
                    log.error("Command %s failed: %s", name, exc)

        if not self.opt_outs.is_opted_out(author):
            self.pool.append(Message(author, content, channel, line.time))
            if len(self.pool) >= self.config.max_message_pool:
                self.flush_pool()

    def on_invite(self, line: IrcLine) -> None:
        channel = channel_from_invite(line.raw)
        self.send(f"JOIN {channel}")
        log.info("Joined channel %s", channel)

    def flush_pool(self) -> int:
        """Write the pooled messages to the database; return how many were written."""
        pool, self.pool = self.pool, []
        if not pool:
            return 0
        try:
            submit_messages(pool, self.db)
        except sqlite3.Error as exc:
            log.error("Failed to submit messages: %s", exc)
            return 0
        log.info("Wrote %d/%d messages to database.", len(pool), self.config.max_message_pool)
        return len(pool)

    def _read_loop(self, sock: ssl.SSLSocket, disconnected: threading.Event) -> None:
        try:
            with sock.makefile("rb") as stream:
                for data in stream:
                    text = data.decode("utf-8", errors="replace").rstrip("\r\n")
                    if text.strip():
                        try:
                            self.handle_line(text)
                        except ValueError as exc:
                            log.warning("Ignoring malformed line %r: %s", text, exc)
        except OSError as exc:
            log.info("Connection read ended: %s", exc)
        finally:
            disconnected.set()
            self.outgoing.put(None)

    def _write_loop(self, sock: ssl.SSLSocket) -> None:
        while (line := self.outgoing.get()) is not None:
            try:
                sock.sendall(f"{line}\r\n".encode("utf-8"))
            except OSError as exc:
                log.info("Connection write failed: %s", exc)
                return

    def run(self, stop: threading.Event) -> None:
        """Connect and serve until *stop* is set or the server disconnects."""
        host, sep, port = self.server.rpartition(":")
        if not sep or not host:
            host, port = self.server, str(DEFAULT_PORT)
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        try:
            raw_sock = socket.create_connection((host, int(port)), timeout=30.0)
            sock = context.wrap_socket(raw_sock, server_hostname=host)
        except (OSError, ValueError) as exc:
            print(f"Connection error: {exc}")
            self.shutdown.set()
            return
        sock.settimeout(None)

        disconnected = threading.Event()
        self.send(f"NICK {BOT_NICK}")
        self.send(f"USER {BOT_NICK} 12 * :{BOT_NICK}")
        threading.Thread(target=self._read_loop, args=(sock, disconnected), daemon=True).start()
        writer = threading.Thread(target=self._write_loop, args=(sock,), daemon=True)
        writer.start()
        try:
            while not stop.is_set() and not disconnected.is_set():
                stop.wait(0.2)
            if stop.is_set():
                log.info("Context canceled. Sending QUIT...")
                self.send("QUIT :Signing off.")
                self.outgoing.put(None)
                writer.join(timeout=2.0)
            else:
                log.info("Received server-side disconnect (such as /kill or unavailability)")
        finally:
            self.shutdown.set()
            sock.close()