# convexguard — Convex authentication convention linter
# Copyright (C) 2026 convexguard contributors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""File walker — discovers files to lint using git or directory fallback.

Primary strategy: git ls-files (if .git/ exists)
Fallback: recursive directory walk with .convexguardignore support
Records manifest_source ("git" or "directory") in the report.

Deciding which files to lint is the walker's job; the rules themselves
analyze whatever file they are handed.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from convexguard.scanner.js_analyzer import ESTREE_JSON_SUFFIX

logger = logging.getLogger(__name__)

IGNORE_FILE = ".convexguardignore"

# Default patterns to ignore when using directory walk fallback
DEFAULT_IGNORE_PATTERNS = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "_generated",  # Convex codegen output
    "dist",
    "build",
    "coverage",
    ".next",
    ".turbo",
    ".cache",
    "*.d.ts",
    "*.min.js",
    # our own output
    "convexguard_report.json",
}

# Source extensions handed to the parser
SOURCE_EXTENSIONS = {".js", ".mjs", ".cjs", ".ts", ".mts", ".cts"}


def _load_ignore_patterns(target_dir: Path) -> set[str]:
    """Load .convexguardignore patterns from the target directory."""
    ignore_file = target_dir / IGNORE_FILE
    patterns = set(DEFAULT_IGNORE_PATTERNS)

    if ignore_file.exists():
        for line in ignore_file.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                patterns.add(line)

    return patterns


def _should_ignore(path: Path, ignore_patterns: set[str]) -> bool:
    """Check if a path matches any ignore pattern."""
    for pattern in ignore_patterns:
        if pattern.startswith("*"):
            # Glob-style suffix matching
            suffix = pattern.lstrip("*")
            if path.name.endswith(suffix):
                return True
        elif path.name == pattern or pattern in path.parts:
            return True
    return False


def get_files_git(target_dir: Path) -> list[Path] | None:
    """Get tracked and untracked-but-not-ignored files using git ls-files.

    Returns None if git is not available or target_dir is not a git repo.
    """
    try:
        result = subprocess.run(
            ["git", "ls-files", "--cached", "--others", "--exclude-standard"],
            cwd=str(target_dir),
            capture_output=True,
            text=True,
            timeout=30,
        )
    except FileNotFoundError:
        logger.debug("git not found in PATH")
        return None
    except subprocess.TimeoutExpired:
        logger.warning("git ls-files timed out")
        return None
    except OSError as e:
        logger.debug("git ls-files error: %s", e)
        return None

    if result.returncode != 0:
        logger.debug("git ls-files failed: %s", result.stderr)
        return None

    ignore_patterns = _load_ignore_patterns(target_dir)
    files = []
    for line in result.stdout.strip().splitlines():
        if line:
            file_path = Path(line)
            if not _should_ignore(file_path, ignore_patterns):
                files.append(file_path)

    return sorted(files)


def get_files_directory(target_dir: Path) -> list[Path]:
    """Get files via recursive directory walk with .convexguardignore.

    Fallback when git is not available.
    """
    ignore_patterns = _load_ignore_patterns(target_dir)
    files = []

    for item in sorted(target_dir.rglob("*")):
        if item.is_file():
            rel_path = item.relative_to(target_dir)
            if not _should_ignore(rel_path, ignore_patterns):
                files.append(rel_path)

    return sorted(files)


def get_lintable_files(all_files: list[Path]) -> list[Path]:
    """Filter to JS/TS sources and pre-parsed ``*.estree.json`` trees.

    A source file with a sibling ``<name>.estree.json`` is dropped; the
    pre-parsed tree stands in for it.
    """
    present = set(all_files)
    lintable = []
    for f in all_files:
        if f.name.endswith(ESTREE_JSON_SUFFIX):
            lintable.append(f)
        elif f.suffix in SOURCE_EXTENSIONS:
            if f.with_name(f.name + ESTREE_JSON_SUFFIX) in present:
                logger.debug("Using pre-parsed tree for %s", f)
                continue
            lintable.append(f)
    return lintable


def discover_files(target_dir: Path) -> tuple[list[Path], str]:
    """Discover files to lint.

    Returns:
        tuple of (files, manifest_source) where manifest_source is
        "git" or "directory".
    """
    target_dir = target_dir.resolve()

    if not target_dir.exists():
        raise FileNotFoundError(f"Target directory does not exist: {target_dir}")

    if not target_dir.is_dir():
        raise NotADirectoryError(f"Target path is not a directory: {target_dir}")

    # Try git first
    git_dir = target_dir / ".git"
    if git_dir.exists():
        files = get_files_git(target_dir)
        if files is not None:
            logger.info("Using git-derived manifest (%d files)", len(files))
            return files, "git"

    # Fallback to directory walk
    files = get_files_directory(target_dir)
    logger.info("Using directory walk manifest (%d files)", len(files))
    return files, "directory"
