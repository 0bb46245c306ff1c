from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Union

from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.src.examples_agent.models import (
    CandidateFile,
    CategoryTarget,
    ClassReference,
    ExampleMatch,
    ExamplesAgentConfig,
    MatchReport,
    ResolutionResult,
    ResolutionStatus,
    SkipReason,
    SkipRecord,
    TieBreak,
)
from arxiv_assistant.src.examples_agent.source_model import scan_imports

SOURCE_EXTENSION = ".ts"
EXCLUDED_SUFFIXES = (".test.ts", ".d.ts")


def extract_category(source_path: str, root_marker: str) -> Optional[str]:
    """Directory right after `root_marker` in the path, e.g. `chat_models`."""
    posix = Path(source_path).as_posix()
    marker = root_marker.strip("/") + "/"
    idx = posix.find(marker)
    if idx < 0:
        return None
    rest = posix[idx + len(marker):]
    if "/" not in rest:
        return None
    return rest.split("/", 1)[0]


def resolve_example_dirs(
    category: Optional[str],
    category_map: Mapping[str, CategoryTarget],
    examples_root: Union[str, Path],
) -> Optional[List[Path]]:
    """None when the category is unknown or mapped to False."""
    if category is None or category not in category_map:
        return None
    target = category_map[category]
    if target is False or target is None or target is True:
        return None

    names = [target] if isinstance(target, str) else list(target)
    return [Path(examples_root) / name for name in names]


def is_candidate_source(path: Path) -> bool:
    name = path.name
    return name.endswith(SOURCE_EXTENSION) and not name.endswith(EXCLUDED_SUFFIXES)


def scan_directories(directories: Iterable[Union[str, Path]]) -> List[str]:
    """
    All `.ts` files under the directories (recursively), without test and type
    declaration files. Sorted; missing directories contribute nothing.
    """
    found = set()
    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            log.debug("Example directory missing | dir=%s", str(directory))
            continue
        for path in directory.rglob(f"*{SOURCE_EXTENSION}"):
            if path.is_file() and is_candidate_source(path):
                found.add(str(path.resolve()))
    return sorted(found)


def scan_candidate(path: str) -> Optional[CandidateFile]:
    try:
        source = Path(path).read_bytes()
    except OSError as e:
        log.warning("Unreadable candidate file, excluding | path=%s | error=%s", path, str(e))
        return None

    return CandidateFile(path=path, imported_symbols=scan_imports(source), byte_length=len(source))


def shortest_file(candidates: List[CandidateFile]) -> str:
    return min(candidates, key=lambda c: (c.byte_length, c.path)).path


def resolve_candidates(
    candidates: List[CandidateFile],
    class_name: str,
    tie_break: TieBreak = TieBreak.SHORTEST,
) -> ResolutionResult:
    referencing = [c for c in candidates if c.references(class_name)]

    if not referencing:
        return ResolutionResult.none()
    if len(referencing) == 1:
        return ResolutionResult.matched(referencing[0].path)
    if tie_break is TieBreak.SHORTEST:
        return ResolutionResult.matched(shortest_file(referencing))
    return ResolutionResult.ambiguous(sorted(c.path for c in referencing))


class ExampleFileFinder:
    """
    Pairs classes lacking an example with the best usage example file.

    category -> example directories -> candidate files -> files importing the
    class -> a single file (tie-break) or a skip record with a reason.
    """

    def __init__(
        self,
        category_map: Mapping[str, CategoryTarget],
        examples_root: Union[str, Path],
        source_root_marker: str = "langchain/src",
        tie_break: TieBreak = TieBreak.SHORTEST,
    ):
        self.category_map = category_map
        self.examples_root = Path(examples_root)
        self.source_root_marker = source_root_marker
        self.tie_break = tie_break

    @classmethod
    def from_agent_config(cls, config: ExamplesAgentConfig) -> "ExampleFileFinder":
        return cls(
            category_map=config.category_map,
            examples_root=config.examples_root,
            source_root_marker=config.source_root_marker,
            tie_break=config.tie_break,
        )

    def find(self, klass: ClassReference) -> Union[ExampleMatch, SkipRecord]:
        category = extract_category(klass.defining_file_path, self.source_root_marker)
        directories = resolve_example_dirs(category, self.category_map, self.examples_root)
        if directories is None:
            log.info("Skipping class | class=%s | reason=unsupported category | category=%s", klass.class_name, category)
            return SkipRecord(klass, SkipReason.UNSUPPORTED_CATEGORY)

        files = scan_directories(directories)
        if not files:
            log.info("Skipping class | class=%s | reason=no candidate directory", klass.class_name)
            return SkipRecord(klass, SkipReason.NO_CANDIDATE_DIRECTORY)

        candidates = [c for c in (scan_candidate(f) for f in files) if c is not None]
        result = resolve_candidates(candidates, klass.class_name, self.tie_break)

        if result.status is ResolutionStatus.NONE:
            log.warning("No files found where class is imported | class=%s", klass.class_name)
            return SkipRecord(klass, SkipReason.NO_REFERENCING_FILE)
        if result.status is ResolutionStatus.AMBIGUOUS:
            log.info("Skipping class | class=%s | reason=ambiguous | candidates=%d", klass.class_name, len(result.candidates))
            return SkipRecord(klass, SkipReason.AMBIGUOUS, candidate_count=len(result.candidates))

        log.info("Example file found | class=%s | file=%s", klass.class_name, result.path)
        return ExampleMatch(klass=klass, example_file=result.path)

    def partition(self, classes: Iterable[ClassReference]) -> MatchReport:
        report = MatchReport()
        for klass in classes:
            outcome = self.find(klass)
            if isinstance(outcome, ExampleMatch):
                report.matches.append(outcome)
            else:
                report.skipped.append(outcome)

        log.info("Example matching done | matched=%d | skipped=%d", len(report.matches), len(report.skipped))
        return report
