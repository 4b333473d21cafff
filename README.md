# hearsay-bot

An IRC bot that joins a channel over TLS, listens to what people say, and
stores the messages in a local SQLite database. Chatters can opt out of
collection, and can ask for all of their data to be purged after a grace
period.

## Installing

```
pip install .
```

## Running

```
hearsay -s irc.example.net:6697 -c "#test"
```

- `-s` is the server address and port (default `localhost:6697`; if no port
  is given, 6697 is used).
- `-c` is the channel to join on connect (default `#test`).

The bot connects as `hearsay` over TLS. The server certificate is not
verified. On connect it joins the channel, sets its user mode and marks
itself away with a pointer to the help command. It also joins any channel it
is invited to, answers server PINGs and replies `Bot` to a CTCP VERSION
request.

The bot needs `config.yaml` in the working directory; if the file is missing
or is not valid YAML, it logs an error and exits with status 1. Its database
is `data/database.db`; create the `data` directory before the first run.
Stop it with Ctrl-C or SIGTERM; it sends a QUIT before exiting.

## Configuration

`config.yaml` may set any of the following. Missing keys, empty strings and
numbers that are zero or less keep the defaults shown; a value of the wrong
type (for example a string where a number belongs) is an error.

```yaml
bot:
  prefix: "+"          # command prefix
  mode: "+B"           # user mode set on connect
storage:
  message_pool_size: 30  # messages buffered before a database write
scheduler:
  deletion_days: 5       # days between +forget and the purge
```

## What is stored

Every message from a nick that has not opted out, commands included, is
buffered in memory. When the buffer reaches `message_pool_size` messages it
is written to the `messages` table in one transaction, and each nick seen for
the first time gets a row in the `users` table. Messages still in the buffer
when the bot stops are not written.

## Commands

With the default prefix `+`. Replies go to the channel the command was sent
in, or to the sender for a private message. An unknown command is answered
with `No such command: <name>`.

| Command | What it does |
|---|---|
| `+help [command]` | List the commands, or show one command's description |
| `+opt in` / `+opt out` | Turn collection of your messages on or off |
| `+forget` | Schedule all your data for deletion after `deletion_days` days |
| `+unforget` | Cancel a scheduled deletion |
| `+attribute <message>` | Replies `<nick> is a nerd.` |

`+opt`, `+forget` and `+unforget` work only for nicks already in the `users`
table, that is, after at least one of their messages has been written to the
database.

Deletions run once a day at midnight UTC: every user whose deletion date is
today is removed together with their messages, and is told so by private
message.

## Using it as a library

- `hearsay_bot.config.read_config(path, verbose)` loads a YAML file into a
  `Config`, raising `ConfigError` on failure.
- `hearsay_bot.storage.init_database`, `submit_messages`, `Message` and
  `OptOutTracker` manage the SQLite store.
- `hearsay_bot.parsing` pulls nick, channel and text out of raw IRC lines.
- `hearsay_bot.commands.CommandSet` answers chat commands;
  `execute_deletions` and `deletion_scheduler` carry out scheduled purges.
- `hearsay_bot.bot.parse_line` splits a raw IRC line, and
  `hearsay_bot.bot.HearsayBot` ties everything together into a running client.
- `hearsay_bot.cli.main` is the `hearsay` command.

## What it does not do

The bot has no password or SASL login, does not pick another nick if
`hearsay` is taken, and does not reconnect after a disconnect; it simply
exits. There are no statistics or search commands: reading the stored
messages back is left to other SQLite tools.

## Tests

```
pip install ".[test]"
pytest
```