import socket
import sqlite3

from hearsay_bot.cli import main, parse_args


def test_parse_args_defaults():
    args = parse_args([])
    assert args.server == "localhost:6697"
    assert args.channel == "#test"


def test_parse_args_values():
    args = parse_args(["-s", "irc.example.net:6697", "-c", "#chat"])
    assert args.server == "irc.example.net:6697"
    assert args.channel == "#chat"


def test_main_fails_without_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 1
    assert not (tmp_path / "data" / "database.db").exists()


def test_main_fails_without_data_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("bot:\n  prefix: '!'\n", encoding="utf-8")
    assert main([]) == 1


def test_main_returns_after_connection_error(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("storage:\n  message_pool_size: 5\n", encoding="utf-8")
    (tmp_path / "data").mkdir()
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    assert main(["-s", f"127.0.0.1:{port}", "-c", "#chat"]) == 0
    assert "Connection error" in capsys.readouterr().out

    database = tmp_path / "data" / "database.db"
    assert database.exists()
    connection = sqlite3.connect(database)
    try:
        tables = {
            name
            for (name,) in connection.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    finally:
        connection.close()
    assert {"messages", "users"} <= tables