from __future__ import annotations

import json

import pytest

from taskrunner.config import load_config, parse_config
from taskrunner.errors import ConfigError
from taskrunner.model import GitConfig


def test_load_config_parses_tasks_in_order(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "project": {"name": "demo", "basePath": ".", "version": "1.0"},
                "settings": {"logFile": "x.log", "logLevel": "warn", "tasksDir": "handlers"},
                "tasks": [
                    {"id": "b", "description": "second letter", "params": {"k": 1}},
                    {"id": "a", "enabled": False, "git": {"commit": True, "push": True}},
                ],
            }
        ),
        encoding="utf-8",
    )

    config = load_config(path)

    assert [t.id for t in config.tasks] == ["b", "a"]
    assert config.tasks[0].params == {"k": 1}
    assert config.tasks[0].enabled is True
    assert config.tasks[1].enabled is False
    assert config.tasks[1].git == GitConfig(add=None, commit=True, push=True)
    assert config.project.name == "demo"
    assert config.project.extra == {"version": "1.0"}
    assert config.settings.log_level == "warn"
    assert config.tasks_root == (tmp_path / "handlers").resolve()
    assert config.raw["project"]["version"] == "1.0"


def test_defaults_for_missing_sections() -> None:
    config = parse_config({"tasks": [{"id": "only"}]})

    assert config.settings.log_file == "runner.log"
    assert config.settings.log_level == "info"
    assert config.settings.tasks_dir == "tasks"
    assert config.tasks[0].params == {}
    assert config.tasks[0].git is None


def test_unknown_log_level_falls_back_to_info() -> None:
    config = parse_config({"settings": {"logLevel": "verbose"}, "tasks": []})

    assert config.settings.log_level == "info"


def test_missing_file_is_a_config_error(tmp_path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.json")


def test_invalid_json_is_a_config_error(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{ not json", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid JSON"):
        load_config(path)


@pytest.mark.parametrize(
    "document, message",
    [
        ([], "root must be an object"),
        ({"tasks": {}}, "'tasks' must be a list"),
        ({"tasks": ["x"]}, r"tasks\[0\] must be an object"),
        ({"tasks": [{"description": "no id"}]}, "missing a string 'id'"),
        ({"tasks": [{"id": "../escape"}]}, "not filesystem-safe"),
        ({"tasks": [{"id": ".."}]}, "not filesystem-safe"),
        ({"tasks": [{"id": "a"}, {"id": "a"}]}, "Duplicate task id 'a'"),
    ],
)
def test_invalid_documents_are_rejected(document, message) -> None:
    with pytest.raises(ConfigError, match=message):
        parse_config(document)


def test_with_params_returns_a_copy() -> None:
    task = parse_config({"tasks": [{"id": "a", "params": {"p": "${x}"}}]}).tasks[0]

    resolved = task.with_params({"p": "1"})

    assert resolved.params == {"p": "1"}
    assert task.params == {"p": "${x}"}
    assert resolved.id == task.id


def test_malformed_task_fields_still_load() -> None:
    config = parse_config(
        {"tasks": [{"id": "a", "enabled": "yes", "description": 5, "git": "push"}]}
    )

    task = config.tasks[0]
    assert task.enabled == "yes"
    assert task.description == 5
    assert task.git == "push"
    with pytest.raises(ConfigError, match="'description' must be a string"):
        task.validate()
