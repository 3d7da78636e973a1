"""
Run unit tests and behavior specs.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Dict


def _repo_root() -> Path:
    """
    Resolve the repository root directory.

    :return: Repository root path.
    :rtype: Path
    """
    return Path(__file__).resolve().parent.parent


def _run(command: list[str], *, env: Dict[str, str], cwd: Path) -> int:
    """
    Run a subprocess command with the provided environment.

    :param command: Command arguments.
    :type command: list[str]
    :param env: Environment mapping.
    :type env: dict[str, str]
    :param cwd: Working directory.
    :type cwd: Path
    :return: Process exit code.
    :rtype: int
    """
    return subprocess.call(command, env=env, cwd=str(cwd))


def _env_with_source_path(repo_root: Path) -> Dict[str, str]:
    env = dict(os.environ)
    source = str(repo_root / "src")
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = source if not existing else os.pathsep.join([source, existing])
    return env


def main() -> int:
    """
    Run all unit tests and behavior specs.

    :return: Exit code.
    :rtype: int
    """
    repo_root = _repo_root()
    env = _env_with_source_path(repo_root)
    pytest_code = _run([sys.executable, "-m", "pytest"], env=env, cwd=repo_root)
    if pytest_code != 0:
        return pytest_code
    return _run([sys.executable, "-m", "behave"], env=env, cwd=repo_root)


if __name__ == "__main__":
    raise SystemExit(main())
