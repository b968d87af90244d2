import pytest

from mcpchat.config import Config, load_config


def test_defaults_when_nothing_is_set(tmp_path):
    config = load_config(env={}, dotenv_path=tmp_path / "missing.env")
    assert config == Config()
    assert config.host == "localhost"
    assert config.port == "8080"
    assert config.openai_model == "gpt-3.5-turbo"
    assert config.max_message_length == 1000
    assert config.max_clients_per_room == 50
    assert config.openai_api_key == ""


def test_environment_values_are_used():
    env = {
        "HOST": "0.0.0.0",
        "PORT": "9000",
        "OPENAI_API_KEY": "placeholder",
        "OPENAI_MODEL": "gpt-4",
        "MAX_MESSAGE_LENGTH": "200",
        "MAX_CLIENTS_PER_ROOM": "3",
    }
    config = load_config(env=env)
    assert config.host == "0.0.0.0"
    assert config.port == "9000"
    assert config.openai_api_key == "placeholder"
    assert config.openai_model == "gpt-4"
    assert config.max_message_length == 200
    assert config.max_clients_per_room == 3


def test_empty_value_falls_back_to_default():
    config = load_config(env={"HOST": "", "MAX_CLIENTS_PER_ROOM": ""})
    assert config.host == "localhost"
    assert config.max_clients_per_room == 50


@pytest.mark.parametrize("text", ["abc", "12x", " 5", "1.5", "1_000"])
def test_unparsable_integer_becomes_zero(text):
    config = load_config(env={"MAX_MESSAGE_LENGTH": text})
    assert config.max_message_length == 0


def test_signed_integer_is_accepted():
    config = load_config(env={"MAX_MESSAGE_LENGTH": "+42", "MAX_CLIENTS_PER_ROOM": "-1"})
    assert config.max_message_length == 42
    assert config.max_clients_per_room == -1


def test_dotenv_file_fills_missing_values(tmp_path):
    dotenv = tmp_path / ".env"
    dotenv.write_text("PORT=7000\nOPENAI_MODEL=from-file\n")
    config = load_config(env={"PORT": "9100"}, dotenv_path=dotenv)
    assert config.port == "9100"
    assert config.openai_model == "from-file"


def test_process_environment_is_read(monkeypatch, tmp_path):
    for key in ("HOST", "OPENAI_API_KEY", "MAX_MESSAGE_LENGTH", "MAX_CLIENTS_PER_ROOM"):
        monkeypatch.setenv(key, "")
    monkeypatch.setenv("PORT", "9300")
    monkeypatch.setenv("OPENAI_MODEL", "unused")
    monkeypatch.delenv("OPENAI_MODEL")
    dotenv = tmp_path / ".env"
    dotenv.write_text("PORT=1111\nOPENAI_MODEL=dotenv-model\n")
    config = load_config(dotenv_path=dotenv)
    assert config.port == "9300"
    assert config.openai_model == "dotenv-model"
    assert config.host == "localhost"