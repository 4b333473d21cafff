"""An IRC bot that records channel messages in SQLite, with opt-out and scheduled deletion."""

__version__ = "0.1.0"