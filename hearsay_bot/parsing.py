"""Helpers that pull fields out of raw IRC lines."""

from __future__ import annotations

import re

_CHANNEL = re.compile(r"#\S+")


def channel_from_invite(raw: str) -> str:
    """Return the channel named at the end of an INVITE line."""
    return raw.split(":")[-1]


def nick_from_raw(raw: str) -> str:
    """Return the nick of a ``:nick!user@host ...`` line."""
    if not raw:
        raise ValueError("empty IRC line")
    return raw.split("!")[0][1:]


def content_from_raw(raw: str) -> str:
    """Return the trailing text of a ``:prefix COMMAND target :text`` line."""
    parts = raw.split(":", 2)
    if len(parts) < 3:
        raise ValueError(f"no message text in {raw!r}")
    return parts[2]


def channel_from_raw(raw: str) -> str:
    """Return the first ``#channel`` in *raw*, or an empty string."""
    match = _CHANNEL.search(raw)
    return match.group(0) if match else ""