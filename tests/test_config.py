import pytest

from hearsay_bot.config import Config, ConfigError, read_config


def write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    config = Config()
    assert config.command_prefix == "+"
    assert config.bot_mode == "+B"
    assert config.max_message_pool == 30
    assert config.deletion_days == 5


def test_full_file_overrides_everything(tmp_path):
    path = write(
        tmp_path,
        "bot:\n  prefix: '!'\n  mode: '+iB'\n"
        "storage:\n  message_pool_size: 12\n"
        "scheduler:\n  deletion_days: 9\n",
    )
    config = read_config(path, verbose=True)
    assert config == Config(
        command_prefix="!", bot_mode="+iB", max_message_pool=12, deletion_days=9
    )


def test_partial_file_keeps_defaults(tmp_path):
    path = write(tmp_path, "storage:\n  message_pool_size: 4\n")
    config = read_config(path)
    assert config == Config(max_message_pool=4)


def test_empty_and_non_positive_values_are_ignored(tmp_path):
    path = write(
        tmp_path,
        "bot:\n  prefix: ''\n  mode: ''\n"
        "storage:\n  message_pool_size: 0\n"
        "scheduler:\n  deletion_days: -3\n",
    )
    assert read_config(path) == Config()


def test_empty_file_gives_defaults(tmp_path):
    path = write(tmp_path, "")
    assert read_config(path) == Config()


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        read_config(tmp_path / "absent.yaml")


def test_invalid_yaml_raises(tmp_path):
    path = write(tmp_path, "bot: [unclosed\n")
    with pytest.raises(ConfigError):
        read_config(path)


@pytest.mark.parametrize(
    "text",
    [
        "- just\n- a list\n",
        "bot: 3\n",
        "storage:\n  message_pool_size: many\n",
        "scheduler:\n  deletion_days: true\n",
        "bot:\n  prefix: [1, 2]\n",
    ],
)
def test_wrong_shapes_raise(tmp_path, text):
    path = write(tmp_path, text)
    with pytest.raises(ConfigError):
        read_config(path)