"""
Examples agent: find classes lacking a JSDoc example, match each with a usage
example file, let the LLM condense it into an `@example`, patch the sources and
push a branch.

    examples-agent --dry-run
    examples-agent --limit 10
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from arxiv_assistant.exception.custom_exception import ArxivAssistantException
from arxiv_assistant.logger import GLOBAL_LOGGER as log
from arxiv_assistant.src.examples_agent.example_finder import ExampleFileFinder, scan_directories
from arxiv_assistant.src.examples_agent.example_writer import ExampleGenerator, JsDocWriter
from arxiv_assistant.src.examples_agent.git_ops import (
    init_project,
    new_branch_name,
    open_pull_request,
    run_format_command,
)
from arxiv_assistant.src.examples_agent.models import ExamplePatch, ExamplesAgentConfig, MatchReport
from arxiv_assistant.src.examples_agent.source_model import find_classes_without_examples
from arxiv_assistant.utils.config_loader import load_config
from arxiv_assistant.utils.model_loader import ModelLoader

console = Console()


def report_table(report: MatchReport) -> Table:
    table = Table(title=f"Example matching ({len(report.matches)} matched, {len(report.skipped)} skipped)")
    table.add_column("Class", style="bold cyan")
    table.add_column("Defined in")
    table.add_column("Example file / skip reason")

    for match in report.matches:
        table.add_row(match.klass.class_name, match.klass.defining_file_path, f"[green]{match.example_file}[/green]")
    for skip in report.skipped:
        table.add_row(skip.klass.class_name, skip.klass.defining_file_path, f"[yellow]{skip.message}[/yellow]")
    return table


def build_report(agent_config: ExamplesAgentConfig) -> MatchReport:
    sources = scan_directories([agent_config.source_dir])
    classes = find_classes_without_examples(sources)
    console.print(f"Found [bold]{len(classes)}[/bold] classes without examples.")
    return ExampleFileFinder.from_agent_config(agent_config).partition(classes)


def generate_patches(generator: ExampleGenerator, report: MatchReport, limit: Optional[int]) -> List[ExamplePatch]:
    matches = report.matches[:limit] if limit else report.matches
    patches: List[ExamplePatch] = []
    for match in matches:
        patch = generator.generate(match)
        if patch is not None:
            patches.append(patch)
            console.print(f"Wrote example for [cyan]{match.klass.class_name}[/cyan]")
    return patches


def run(config_path: Optional[str] = None, dry_run: bool = False, limit: Optional[int] = None) -> int:
    config = load_config(config_path)
    agent_config = ExamplesAgentConfig.from_config(config)

    init_project(agent_config.repo_path, agent_config.repo_url)
    report = build_report(agent_config)
    console.print(report_table(report))

    if dry_run:
        log.info("Dry run, stopping before generation | matched=%d", len(report.matches))
        return 0

    generator = ExampleGenerator(ModelLoader(config), agent_config)
    patches = generate_patches(generator, report, limit or agent_config.max_examples)
    if not patches:
        console.print("[yellow]No examples generated, nothing to push.[/yellow]")
        return 0

    JsDocWriter().apply(patches)
    run_format_command(agent_config.repo_path, agent_config.format_command)

    branch = open_pull_request(
        agent_config.repo_path,
        new_branch_name(agent_config.branch_prefix),
        agent_config.pull_request_title,
    )
    console.print(f"\nAdded [bold]{len(patches)}[/bold] examples to the codebase!\nOpened PR @ branch [bold]{branch}[/bold]")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="examples-agent", description="Add JSDoc examples to undocumented classes.")
    parser.add_argument("--dry-run", action="store_true", help="only print the class to example file matches")
    parser.add_argument("--limit", type=int, default=None, help="maximum number of examples to generate")
    parser.add_argument("--config", default=None, help="path to config.yaml")
    args = parser.parse_args(argv)

    try:
        return run(config_path=args.config, dry_run=args.dry_run, limit=args.limit)
    except ArxivAssistantException as e:
        log.error("Examples agent failed | error=%s", str(e))
        console.print(f"[red]{e}[/red]")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
