from unittest.mock import MagicMock

import pytest
import yaml

from arxiv_assistant.exception.custom_exception import ArxivAssistantException
from arxiv_assistant.src.examples_agent import agent
from arxiv_assistant.src.examples_agent.models import ExamplePatch

SOURCE = """export class ToolA {}

export class ToolB {}

export class ToolC {}
"""

EXAMPLE = 'import { ToolA, ToolB, ToolC } from "langchain/tools";\n'


class FakeGenerator:
    instances = []

    def __init__(self, model_loader, agent_config):
        self.generated = []
        FakeGenerator.instances.append(self)

    def generate(self, match):
        name = match.klass.class_name
        self.generated.append(name)
        return ExamplePatch(match.klass.defining_file_path, name, f"const t = new {name}();")


@pytest.fixture
def project(tmp_path, monkeypatch):
    repo = tmp_path / "langchainjs"
    source = repo / "langchain" / "src" / "tools" / "impl.ts"
    source.parent.mkdir(parents=True)
    source.write_text(SOURCE)
    example = repo / "examples" / "src" / "tools" / "all.ts"
    example.parent.mkdir(parents=True)
    example.write_text(EXAMPLE)

    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "examples_agent": {
                    "repo_url": "https://example.invalid/langchainjs.git",
                    "repo_path": str(repo),
                    "max_examples": 2,
                    "branch_prefix": "agent/docs",
                    "prettier": False,
                    "category_map": {"tools": "tools"},
                }
            }
        )
    )

    mocks = {
        "init_project": MagicMock(),
        "ModelLoader": MagicMock(),
        "run_format_command": MagicMock(return_value=True),
        "open_pull_request": MagicMock(side_effect=lambda path, branch, title: branch),
    }
    for name, mock in mocks.items():
        monkeypatch.setattr(agent, name, mock)
    FakeGenerator.instances = []
    monkeypatch.setattr(agent, "ExampleGenerator", FakeGenerator)

    mocks["config"] = str(config_path)
    mocks["source"] = source
    return mocks


def test_dry_run_stops_before_generation_and_git(project):
    code = agent.main(["--dry-run", "--config", project["config"]])

    assert code == 0
    project["init_project"].assert_called_once()
    project["ModelLoader"].assert_not_called()
    assert FakeGenerator.instances == []
    project["run_format_command"].assert_not_called()
    project["open_pull_request"].assert_not_called()
    assert project["source"].read_text() == SOURCE


def test_build_report_matches_every_class(project):
    report = agent.build_report(agent.ExamplesAgentConfig.from_config(agent.load_config(project["config"])))

    assert [m.klass.class_name for m in report.matches] == ["ToolA", "ToolB", "ToolC"]
    assert report.skipped == []


def test_limit_flag_caps_generated_examples(project):
    code = agent.main(["--limit", "1", "--config", project["config"]])

    assert code == 0
    assert FakeGenerator.instances[0].generated == ["ToolA"]
    text = project["source"].read_text()
    assert "new ToolA()" in text
    assert "new ToolB()" not in text


def test_max_examples_applies_without_limit_flag(project):
    agent.main(["--config", project["config"]])

    assert FakeGenerator.instances[0].generated == ["ToolA", "ToolB"]


def test_full_run_formats_and_opens_pull_request(project):
    code = agent.main(["--config", project["config"]])

    assert code == 0
    project["run_format_command"].assert_called_once()
    (path, branch, title), _ = project["open_pull_request"].call_args
    assert branch.startswith("agent/docs-")
    assert title == "[AUTO-GENERATED] Add JSDoc examples to classes."
    assert "@example" in project["source"].read_text()


def test_no_patches_skips_git(project, monkeypatch):
    monkeypatch.setattr(FakeGenerator, "generate", lambda self, match: None)

    assert agent.main(["--config", project["config"]]) == 0
    project["open_pull_request"].assert_not_called()


def test_project_errors_exit_with_code_one(project):
    project["init_project"].side_effect = ArxivAssistantException("git clone failed")

    assert agent.main(["--config", project["config"]]) == 1
    project["open_pull_request"].assert_not_called()
