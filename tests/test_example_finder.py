from pathlib import Path

import pytest

from arxiv_assistant.src.examples_agent.example_finder import (
    ExampleFileFinder,
    extract_category,
    resolve_candidates,
    resolve_example_dirs,
    scan_candidate,
    scan_directories,
)
from arxiv_assistant.src.examples_agent.models import (
    CandidateFile,
    ClassReference,
    ExampleMatch,
    ExamplesAgentConfig,
    ResolutionStatus,
    SkipReason,
    SkipRecord,
    TieBreak,
)

CATEGORY_MAP = {
    "tools": "tools",
    "load": False,
    "embeddings": ["embeddings", "models/embeddings"],
    "vectorstores": "vectorstores",
    "chat_models": ["models/chat", "chat"],
}


def write(path: Path, content: str) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return str(path.resolve())


@pytest.fixture
def repo(tmp_path):
    return tmp_path.resolve() / "langchainjs"


@pytest.fixture
def examples_root(repo):
    return repo / "examples" / "src"


@pytest.fixture
def finder(examples_root):
    return ExampleFileFinder(CATEGORY_MAP, examples_root, source_root_marker="langchain/src")


def class_in(repo: Path, category: str, name: str) -> ClassReference:
    return ClassReference(str(repo / "langchain" / "src" / category / "impl.ts"), name)


# ---------- category mapper ----------


def test_extract_category_takes_directory_after_marker():
    path = "/tmp/langchainjs/langchain/src/chat_models/openai.ts"
    assert extract_category(path, "langchain/src") == "chat_models"


def test_extract_category_without_marker_or_directory():
    assert extract_category("/somewhere/else/tools/x.ts", "langchain/src") is None
    assert extract_category("/tmp/langchainjs/langchain/src/index.ts", "langchain/src") is None


def test_resolve_example_dirs_single_and_list(tmp_path):
    assert resolve_example_dirs("tools", CATEGORY_MAP, tmp_path) == [tmp_path / "tools"]
    assert resolve_example_dirs("embeddings", CATEGORY_MAP, tmp_path) == [
        tmp_path / "embeddings",
        tmp_path / "models" / "embeddings",
    ]


@pytest.mark.parametrize("category", ["load", "not_a_category", None])
def test_resolve_example_dirs_unsupported(tmp_path, category):
    assert resolve_example_dirs(category, CATEGORY_MAP, tmp_path) is None


@pytest.mark.parametrize("category", ["load", "graphs", "something_new"])
def test_unsupported_categories_are_skipped_without_raising(finder, repo, category):
    outcome = finder.find(class_in(repo, category, "Whatever"))

    assert isinstance(outcome, SkipRecord)
    assert outcome.reason is SkipReason.UNSUPPORTED_CATEGORY
    assert outcome.message == "unsupported category"


# ---------- directory scanner ----------


def test_scan_excludes_test_and_declaration_files(tmp_path):
    kept = write(tmp_path / "tools" / "a.ts", "export {};")
    write(tmp_path / "tools" / "a.test.ts", "export {};")
    write(tmp_path / "tools" / "a.d.ts", "export {};")
    write(tmp_path / "tools" / "a.tsx", "export {};")
    write(tmp_path / "tools" / "notes.md", "# notes")

    assert scan_directories([tmp_path / "tools"]) == [kept]


def test_scan_is_recursive_sorted_and_deduplicated(tmp_path):
    b = write(tmp_path / "tools" / "b.ts", "")
    a = write(tmp_path / "tools" / "nested" / "a.ts", "")

    found = scan_directories([tmp_path / "tools", tmp_path / "tools"])

    assert found == sorted([a, b])


def test_scan_missing_directory_is_empty(tmp_path):
    assert scan_directories([tmp_path / "does-not-exist"]) == []


# ---------- import scanner ----------


def test_scan_candidate_collects_named_imports(tmp_path):
    path = write(
        tmp_path / "x.ts",
        'import Default, { ToolX, Other } from "langchain/tools";\n'
        'import * as everything from "langchain";\n'
        "const t = new ToolX();\n",
    )

    candidate = scan_candidate(path)

    assert candidate.imported_symbols == frozenset({"ToolX", "Other"})
    assert candidate.byte_length == Path(path).stat().st_size
    assert not candidate.references("Default")
    assert not candidate.references("everything")


def test_aliased_import_does_not_reference_original_name(tmp_path):
    # Aliases are not resolved: `{ Foo as Bar }` only brings `Bar` into scope,
    # so the file is not considered an example of `Foo`.
    path = write(tmp_path / "alias.ts", 'import { Foo as Bar } from "lib";\nnew Bar();\n')

    candidate = scan_candidate(path)

    assert not candidate.references("Foo")
    assert candidate.references("Bar")


def test_unreadable_candidate_is_excluded(tmp_path):
    assert scan_candidate(str(tmp_path / "gone.ts")) is None


def test_non_utf8_candidate_does_not_stop_matching(finder, repo, examples_root):
    bad = examples_root / "tools" / "bad.ts"
    bad.parent.mkdir(parents=True, exist_ok=True)
    bad.write_bytes(b'import { ToolX } from "caf\xe9";\n')
    good = write(examples_root / "tools" / "good.ts", 'import { ToolY } from "t";\nnew ToolY();\n')

    assert scan_candidate(str(bad)).references("ToolX")

    report = finder.partition([class_in(repo, "tools", "ToolY")])

    assert report.matches == [ExampleMatch(class_in(repo, "tools", "ToolY"), good)]
    assert report.skipped == []


# ---------- candidate resolver ----------


def _candidate(path, symbols, length):
    return CandidateFile(path=path, imported_symbols=frozenset(symbols), byte_length=length)


def test_zero_referencing_candidates_is_none():
    result = resolve_candidates([_candidate("/a.ts", {"Other"}, 10), _candidate("/b.ts", set(), 5)], "Target")
    assert result.status is ResolutionStatus.NONE


def test_single_referencing_candidate_matches():
    result = resolve_candidates(
        [_candidate("/a.ts", {"Other"}, 10), _candidate("/b.ts", {"Target"}, 500)], "Target"
    )
    assert result.status is ResolutionStatus.MATCHED
    assert result.path == "/b.ts"


def test_shortest_tie_break_is_deterministic():
    candidates = [
        _candidate("/z.ts", {"Target"}, 40),
        _candidate("/b.ts", {"Target"}, 40),
        _candidate("/a.ts", {"Target"}, 90),
    ]

    picks = {resolve_candidates(list(order), "Target").path for order in (candidates, candidates[::-1])}

    # equal lengths fall back to path order
    assert picks == {"/b.ts"}


def test_tie_break_none_reports_ambiguous():
    candidates = [_candidate("/b.ts", {"Target"}, 1), _candidate("/a.ts", {"Target"}, 2)]

    result = resolve_candidates(candidates, "Target", TieBreak.NONE)

    assert result.status is ResolutionStatus.AMBIGUOUS
    assert result.candidates == ("/a.ts", "/b.ts")


# ---------- orchestrator scenarios ----------


def test_tools_category_resolves_single_importing_file(finder, repo, examples_root):
    example = write(examples_root / "tools" / "toolx.ts", 'import { ToolX } from "langchain/tools";\n')
    write(examples_root / "tools" / "other.ts", 'import { ToolY } from "langchain/tools";\n')

    outcome = finder.find(class_in(repo, "tools", "ToolX"))

    assert outcome == ExampleMatch(klass=class_in(repo, "tools", "ToolX"), example_file=example)


def test_load_category_is_unsupported(finder, repo):
    outcome = finder.find(class_in(repo, "load", "Loader"))
    assert outcome.message == "unsupported category"


def test_embeddings_tie_break_picks_shorter_file(finder, repo, examples_root):
    short = write(
        examples_root / "embeddings" / "short.ts",
        'import { EmbedFoo } from "x";\nnew EmbedFoo();\n',
    )
    write(
        examples_root / "models" / "embeddings" / "long.ts",
        'import { EmbedFoo } from "x";\nconst e = new EmbedFoo({ verbose: true });\nawait e.embedQuery("hi");\n',
    )
    write(examples_root / "models" / "embeddings" / "unrelated.ts", 'import { EmbedBar } from "x";\n')

    outcome = finder.find(class_in(repo, "embeddings", "EmbedFoo"))

    assert isinstance(outcome, ExampleMatch)
    assert outcome.example_file == short


def test_empty_example_directory_is_no_candidate_directory(finder, repo, examples_root):
    (examples_root / "vectorstores").mkdir(parents=True)

    outcome = finder.find(class_in(repo, "vectorstores", "MemoryStore"))

    assert outcome.reason is SkipReason.NO_CANDIDATE_DIRECTORY
    assert outcome.message == "no candidate directory"


def test_no_importing_file_is_no_referencing_file(finder, repo, examples_root):
    write(examples_root / "tools" / "a.ts", 'import { Calculator } from "langchain/tools";\n')

    outcome = finder.find(class_in(repo, "tools", "ToolX"))

    assert outcome.reason is SkipReason.NO_REFERENCING_FILE
    assert outcome.message == "no referencing file found"


def test_ambiguous_skip_message_counts_candidates(repo, examples_root):
    write(examples_root / "tools" / "a.ts", 'import { ToolX } from "t";\n')
    write(examples_root / "tools" / "b.ts", 'import { ToolX } from "t";\n')
    finder = ExampleFileFinder(CATEGORY_MAP, examples_root, tie_break=TieBreak.NONE)

    outcome = finder.find(class_in(repo, "tools", "ToolX"))

    assert outcome.reason is SkipReason.AMBIGUOUS
    assert outcome.message == "ambiguous: 2 candidates"


def test_partition_splits_matches_and_skips(finder, repo, examples_root):
    write(examples_root / "tools" / "a.ts", 'import { ToolX } from "t";\n')
    classes = [
        class_in(repo, "tools", "ToolX"),
        class_in(repo, "load", "Loader"),
        class_in(repo, "tools", "ToolZ"),
    ]

    report = finder.partition(classes)

    assert [m.klass.class_name for m in report.matches] == ["ToolX"]
    assert [(s.klass.class_name, s.message) for s in report.skipped] == [
        ("Loader", "unsupported category"),
        ("ToolZ", "no referencing file found"),
    ]
    assert report.total == 3


def test_agent_config_reads_category_map(config):
    agent_config = ExamplesAgentConfig.from_config(config)

    assert agent_config.category_map["load"] is False
    assert agent_config.category_map["chat_models"] == ["models/chat", "chat"]
    assert agent_config.tie_break is TieBreak.SHORTEST
    assert agent_config.examples_root == agent_config.repo_path / "examples" / "src"


def test_agent_config_requires_repository():
    with pytest.raises(ValueError):
        ExamplesAgentConfig.from_config({"examples_agent": {"repo_url": "x"}})
