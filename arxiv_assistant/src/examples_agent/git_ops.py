from __future__ import annotations

import subprocess
import uuid
from pathlib import Path
from typing import List, Optional, Sequence

from arxiv_assistant.exception.custom_exception import ArxivAssistantException
from arxiv_assistant.logger import GLOBAL_LOGGER as log


def run_git(args: Sequence[str], cwd: Optional[Path] = None) -> str:
    cmd: List[str] = ["git", *args]
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        log.error("git command failed | cmd=%s | stderr=%s", " ".join(cmd), (e.stderr or "").strip())
        raise ArxivAssistantException(f"git {' '.join(args)} failed", e) from e
    return result.stdout


def is_work_tree(path: Path) -> bool:
    if not path.is_dir():
        return False
    try:
        return run_git(["rev-parse", "--is-inside-work-tree"], cwd=path).strip() == "true"
    except ArxivAssistantException:
        return False


def init_project(repo_path: Path, repo_url: str) -> Path:
    """Pull the checkout at `repo_path`, cloning it first when missing."""
    repo_path = Path(repo_path)
    if is_work_tree(repo_path):
        log.info("Updating existing checkout | path=%s", str(repo_path))
        run_git(["pull"], cwd=repo_path)
        return repo_path

    log.info("Cloning repository | url=%s | path=%s", repo_url, str(repo_path))
    repo_path.parent.mkdir(parents=True, exist_ok=True)
    run_git(["clone", repo_url, str(repo_path)])
    return repo_path


def run_format_command(repo_path: Path, command: Sequence[str]) -> bool:
    if not command:
        return False
    try:
        subprocess.run(list(command), cwd=str(repo_path), capture_output=True, text=True, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        log.warning("Format command failed, continuing | cmd=%s | error=%s", " ".join(command), str(e))
        return False
    log.info("Formatted repository | cmd=%s", " ".join(command))
    return True


def new_branch_name(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:6]}"


def open_pull_request(repo_path: Path, branch: str, title: str) -> str:
    """Commits every change on a new branch and pushes it upstream."""
    run_git(["checkout", "-b", branch], cwd=repo_path)
    run_git(["add", "-A"], cwd=repo_path)
    run_git(["commit", "-m", title], cwd=repo_path)
    run_git(["push", "--set-upstream", "origin", branch], cwd=repo_path)
    log.info("Pushed branch | branch=%s", branch)
    return branch
