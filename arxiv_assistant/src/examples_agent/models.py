from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

# category -> example directory, list of directories, or False when unsupported
CategoryTarget = Union[str, List[str], bool]


@dataclass(frozen=True)
class ClassReference:
    """An exported, non-abstract class lacking a usable documentation example."""

    defining_file_path: str
    class_name: str


@dataclass(frozen=True)
class CandidateFile:
    path: str
    imported_symbols: FrozenSet[str]
    byte_length: int

    def references(self, class_name: str) -> bool:
        return class_name in self.imported_symbols


class ResolutionStatus(str, Enum):
    MATCHED = "matched"
    NONE = "none"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class ResolutionResult:
    status: ResolutionStatus
    path: Optional[str] = None
    candidates: Tuple[str, ...] = ()

    @classmethod
    def matched(cls, path: str) -> "ResolutionResult":
        return cls(ResolutionStatus.MATCHED, path=path, candidates=(path,))

    @classmethod
    def none(cls) -> "ResolutionResult":
        return cls(ResolutionStatus.NONE)

    @classmethod
    def ambiguous(cls, paths: List[str]) -> "ResolutionResult":
        return cls(ResolutionStatus.AMBIGUOUS, candidates=tuple(paths))


class SkipReason(str, Enum):
    UNSUPPORTED_CATEGORY = "unsupported category"
    NO_CANDIDATE_DIRECTORY = "no candidate directory"
    NO_REFERENCING_FILE = "no referencing file found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class ExampleMatch:
    klass: ClassReference
    example_file: str


@dataclass(frozen=True)
class SkipRecord:
    klass: ClassReference
    reason: SkipReason
    candidate_count: int = 0

    @property
    def message(self) -> str:
        if self.reason is SkipReason.AMBIGUOUS:
            return f"ambiguous: {self.candidate_count} candidates"
        return self.reason.value


@dataclass
class MatchReport:
    """Partitioned output of one resolution pass."""

    matches: List[ExampleMatch] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.matches) + len(self.skipped)


@dataclass(frozen=True)
class ExamplePatch:
    """Describes an `@example` to insert into the JSDoc of one class."""

    file_path: str
    class_name: str
    insert_text: str


class TieBreak(str, Enum):
    SHORTEST = "shortest"
    NONE = "none"


@dataclass(frozen=True)
class ExamplesAgentConfig:
    repo_url: str
    repo_path: Path
    category_map: Mapping[str, CategoryTarget]
    project_dir: str = "langchain"
    source_root_marker: str = "langchain/src"
    examples_dir: str = "examples/src"
    tie_break: TieBreak = TieBreak.SHORTEST
    max_examples: Optional[int] = None
    branch_prefix: str = "agent/add-example-jsdocs"
    pull_request_title: str = "[AUTO-GENERATED] Add JSDoc examples to classes."
    model_class_choices: Tuple[str, ...] = ("ChatOpenAI", "ChatAnthropic")
    prettier: bool = True
    format_command: Tuple[str, ...] = ()
    failed_classes_file: Path = Path("failed-class.txt")

    @property
    def source_dir(self) -> Path:
        return self.repo_path / self.project_dir / "src"

    @property
    def examples_root(self) -> Path:
        return self.repo_path / self.examples_dir

    @classmethod
    def from_config(cls, config: Dict) -> "ExamplesAgentConfig":
        """Build from the `examples_agent` section of config.yaml."""
        section = config.get("examples_agent", {})
        if "repo_url" not in section or "repo_path" not in section:
            raise ValueError("examples_agent.repo_url and examples_agent.repo_path are required")

        return cls(
            repo_url=section["repo_url"],
            repo_path=Path(section["repo_path"]),
            category_map=dict(section.get("category_map", {})),
            project_dir=section.get("project_dir", "langchain"),
            source_root_marker=section.get("source_root_marker", "langchain/src"),
            examples_dir=section.get("examples_dir", "examples/src"),
            tie_break=TieBreak(section.get("tie_break", "shortest")),
            max_examples=section.get("max_examples"),
            branch_prefix=section.get("branch_prefix", "agent/add-example-jsdocs"),
            pull_request_title=section.get(
                "pull_request_title", "[AUTO-GENERATED] Add JSDoc examples to classes."
            ),
            model_class_choices=tuple(section.get("model_class_choices", ("ChatOpenAI", "ChatAnthropic"))),
            prettier=bool(section.get("prettier", True)),
            format_command=tuple(section.get("format_command") or ()),
            failed_classes_file=Path(section.get("failed_classes_file", "failed-class.txt")),
        )
