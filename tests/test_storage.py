from datetime import datetime

import pytest
import sqlite3

from hearsay_bot.storage import (
    Message,
    OptOutTracker,
    init_database,
    submit_messages,
)


@pytest.fixture
def db(tmp_path):
    connection = init_database(tmp_path / "test.db")
    yield connection
    connection.close()


def msg(nick, content="hello", channel="#test", when=datetime(2024, 1, 2, 3, 4, 5)):
    return Message(nick=nick, content=content, channel=channel, timestamp=when)


def test_init_creates_tables_and_index(db):
    names = {
        row[0]
        for row in db.execute("SELECT name FROM sqlite_master WHERE type IN ('table', 'index')")
    }
    assert {"messages", "users", "idx_nick"} <= names


def test_init_is_idempotent(tmp_path):
    path = tmp_path / "again.db"
    first = init_database(path)
    submit_messages([msg("alice")], first)
    first.close()
    second = init_database(path)
    try:
        assert second.execute("SELECT COUNT(*) FROM messages").fetchone()[0] == 1
    finally:
        second.close()


def test_init_enables_foreign_keys(db):
    assert db.execute("PRAGMA foreign_keys").fetchone()[0] == 1


def test_submit_stores_messages_and_users(db):
    submit_messages([msg("alice", "hi"), msg("bob", "yo", "#other"), msg("alice", "again")], db)
    rows = db.execute("SELECT nick, channel, message, time FROM messages ORDER BY id").fetchall()
    assert rows == [
        ("alice", "#test", "hi", "2024-01-02 03:04:05"),
        ("bob", "#other", "yo", "2024-01-02 03:04:05"),
        ("alice", "#test", "again", "2024-01-02 03:04:05"),
    ]
    users = db.execute("SELECT nick, opt, deletion FROM users ORDER BY nick").fetchall()
    assert users == [("alice", 1, None), ("bob", 1, None)]


def test_submit_keeps_first_registration(db):
    submit_messages([msg("alice", when=datetime(2024, 1, 2, 3, 4, 5))], db)
    submit_messages([msg("alice", when=datetime(2024, 2, 3, 4, 5, 6))], db)
    registered = db.execute("SELECT registered FROM users WHERE nick = 'alice'").fetchone()[0]
    assert registered == "2024-01-02 03:04:05"


def test_submit_rolls_back_on_failure(db):
    bad = Message(nick=None, content="x", channel="#test", timestamp=datetime(2024, 1, 1))
    with pytest.raises(sqlite3.IntegrityError):
        submit_messages([msg("alice"), bad], db)
    assert db.execute("SELECT COUNT(*) FROM messages").fetchone()[0] == 0
    assert db.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0


def test_deleting_user_cascades_to_messages(db):
    submit_messages([msg("alice"), msg("bob")], db)
    with db:
        db.execute("DELETE FROM users WHERE nick = 'alice'")
    assert db.execute("SELECT nick FROM messages").fetchall() == [("bob",)]


def test_tracker_opt_out_and_in():
    tracker = OptOutTracker()
    tracker.opt_out("alice")
    assert tracker.is_opted_out("alice")
    assert not tracker.is_opted_out("bob")
    tracker.opt_in("alice")
    assert not tracker.is_opted_out("alice")
    tracker.opt_in("nobody")
    assert len(tracker) == 0


def test_tracker_load_from_database(db):
    submit_messages([msg("alice"), msg("bob"), msg("carol")], db)
    with db:
        db.execute("UPDATE users SET opt = ? WHERE nick IN ('alice', 'carol')", (False,))
    tracker = OptOutTracker()
    tracker.load(db)
    assert "alice" in tracker
    assert "carol" in tracker
    assert "bob" not in tracker
    assert len(tracker) == 2