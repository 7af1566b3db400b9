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

"""JavaScript/TypeScript front end — source text to ESTree, then lint.

Two inputs are accepted:
- Source files (.js, .mjs, .cjs, .ts, ...) parsed with esprima as ES
  modules. esprima does not understand TypeScript-only syntax (type
  annotations, generics, ``as`` casts); such files fail to parse and are
  reported as unparsed rather than silently passing.
- ``*.estree.json`` files: a tree already produced by a TypeScript-aware
  ESTree parser (e.g. @typescript-eslint/typescript-estree) and dumped as
  JSON. The lint target is the file name with ``.estree.json`` removed.

Read and parse failures are logged and recorded on the FileResult; they
never abort a scan and never become diagnostics.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import esprima
from esprima.error_handler import Error as EsprimaError

from convexguard.models.diagnostics import Diagnostic, FileResult
from convexguard.models.rules import Policy
from convexguard.policy.config import is_exempt_file
from convexguard.scanner.engine import lint_tree

logger = logging.getLogger(__name__)

ESTREE_JSON_SUFFIX = ".estree.json"


class ParseError(Exception):
    """Source text could not be turned into an ESTree tree."""


def parse_source(source: str) -> dict[str, Any]:
    """Parse ES module source into a plain ESTree dict with ``loc``/``range``."""
    try:
        program = esprima.parseModule(source, loc=True, range=True)
    except EsprimaError as e:
        raise ParseError(str(e)) from e
    except RecursionError as e:
        raise ParseError("source nests too deeply to parse") from e
    return program.toDict()


def load_estree_json(path: Path) -> dict[str, Any]:
    """Load a pre-parsed ESTree tree from JSON."""
    try:
        tree = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid ESTree JSON: {e}") from e
    if not isinstance(tree, dict) or not isinstance(tree.get("type"), str):
        raise ParseError("ESTree JSON root is not a node")
    return tree


def lint_name(relative_name: str) -> str:
    """Name the rules see: ``convex/notes.ts.estree.json`` -> ``convex/notes.ts``."""
    if relative_name.endswith(ESTREE_JSON_SUFFIX):
        return relative_name[: -len(ESTREE_JSON_SUFFIX)]
    return relative_name


def lint_source(source: str, filename: str, policy: Optional[Policy] = None) -> list[Diagnostic]:
    """Parse and lint source text. Raises ParseError on invalid source."""
    tree = parse_source(source)
    return lint_tree(tree, filename, policy, source.splitlines())


def lint_file(file_path: Path, relative_name: str, policy: Optional[Policy] = None) -> FileResult:
    """Lint a single file.

    Path checks (the exempt file) run against ``file_path`` so that they
    see the full path; results are reported under ``relative_name``.

    Returns:
        FileResult with diagnostics, or with ``error`` set when the file
        could not be read or parsed.
    """
    policy = policy or Policy()
    filename = lint_name(str(file_path))
    result = FileResult(file=lint_name(relative_name))

    if is_exempt_file(filename, policy):
        logger.debug("Skipping exempt file %s", result.file)
        return result

    source_lines: list[str] = []
    try:
        if relative_name.endswith(ESTREE_JSON_SUFFIX):
            tree = load_estree_json(file_path)
            original = file_path.with_name(file_path.name[: -len(ESTREE_JSON_SUFFIX)])
            if original.is_file():
                source_lines = original.read_text(encoding="utf-8", errors="replace").splitlines()
        else:
            source = file_path.read_text(encoding="utf-8")
            source_lines = source.splitlines()
            tree = parse_source(source)
    except (UnicodeDecodeError, OSError) as e:
        logger.warning("Could not read %s: %s", file_path, e)
        result.error = f"read error: {e}"
        return result
    except ParseError as e:
        logger.warning("Could not parse %s: %s", file_path, e)
        result.error = f"parse error: {e}"
        return result

    result.diagnostics = lint_tree(tree, filename, policy, source_lines, display_name=result.file)
    return result
