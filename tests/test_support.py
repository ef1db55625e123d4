import json
import logging

import pytest

from quizcraft.core.config import Settings
from quizcraft.core.logging_config import ConsoleFormatter, JSONFormatter, RequestIDFilter, request_id_var
from quizcraft.core.prompt_manager import PromptManager


def make_record(message="hello"):
    return logging.LogRecord("quizcraft.test", logging.WARNING, __file__, 10, message, None, None)


def test_json_formatter_includes_request_id():
    token = request_id_var.set("req-1")
    try:
        record = make_record()
        RequestIDFilter().filter(record)
    finally:
        request_id_var.reset(token)

    entry = json.loads(JSONFormatter().format(record))

    assert entry["request_id"] == "req-1"
    assert entry["level"] == "WARNING"
    assert entry["message"] == "hello"


def test_console_formatter_omits_missing_request_id():
    record = make_record()
    RequestIDFilter().filter(record)

    line = ConsoleFormatter().format(record)

    assert "quizcraft.test hello" in line
    assert "[-]" not in line


def test_prompt_manager_substitutes_and_reports_missing(tmp_path, caplog):
    (tmp_path / "greeting.txt").write_text("Hi {{NAME}}, topic {{TOPIC}}", encoding="utf-8")
    prompts = PromptManager(tmp_path)

    with caplog.at_level(logging.WARNING):
        assert prompts.load_prompt("greeting", NAME="Ada") == "Hi Ada, topic {{TOPIC}}"
    assert "TOPIC" in caplog.text


def test_prompt_manager_unknown_template(tmp_path):
    with pytest.raises(FileNotFoundError):
        PromptManager(tmp_path).load_prompt("missing")


def test_packaged_templates_present():
    assert {"quiz_generation", "quiz_system"} <= set(PromptManager().list_templates())


@pytest.mark.parametrize("key,expected", [
    (None, None),
    ("", None),
    ("your_together_api_key_here", None),
    (" real-key ", "real-key"),
])
def test_llm_key_placeholder_means_unconfigured(key, expected):
    settings = Settings(_env_file=None, LLM_API_KEY=key)
    assert settings.get_llm_key() == expected
