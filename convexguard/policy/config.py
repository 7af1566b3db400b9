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

"""Policy loading and literal-string matchers.

The rules never match paths themselves; they go through the predicates
here so that the exempt-file check, the generated-server check and the
wrapper-module check all read the same policy the same way.

Used at:
- Rule creation: exempt-file check (rules return no listeners)
- Import visits: module source classification for the alias tables
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml

from convexguard.models.rules import Policy

logger = logging.getLogger(__name__)

DEFAULT_POLICY_PATH = Path(__file__).parent.parent / "rules" / "default_policy.yaml"


def load_policy(policy_path: Optional[str | Path] = None) -> Policy:
    """Load a policy from a YAML file, or the bundled default.

    Keys missing from the file keep their model defaults. Raises
    FileNotFoundError for a missing explicit path and
    pydantic.ValidationError for malformed content.
    """
    path = Path(policy_path) if policy_path is not None else DEFAULT_POLICY_PATH
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Policy file %s is empty, using defaults", path)
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Policy file {path} must contain a mapping, got {type(data).__name__}")

    policy = Policy(**data)
    logger.debug("Loaded policy from %s", path)
    return policy


def is_exempt_file(filename: str, policy: Policy) -> bool:
    """Check if ``filename`` is the designated wrapper implementation file.

    Exact suffix match; ``convex/auth.ts`` and ``convex\\auth.ts`` both
    match, ``convex/oauth.ts`` does not.
    """
    suffix = policy.exempt_file
    if not suffix:
        return False
    return filename.endswith(suffix) or filename.endswith(suffix.replace("/", "\\"))


def is_generated_server_module(source: str, policy: Policy) -> bool:
    """Check if an import source refers to the generated server module."""
    return any(fragment in source for fragment in policy.generated_server_paths if fragment)


def is_wrapper_module(source: str, policy: Policy) -> bool:
    """Check if an import source may provide the authenticated wrappers.

    Accepts the exact relative spellings, any source containing the
    wrapper substring, and re-exports through the generated server module.
    The substring test also matches sources such as ``./authz`` and
    ``@acme/authkit``.
    """
    if source in policy.wrapper_module_paths:
        return True
    if policy.wrapper_module_substring and policy.wrapper_module_substring in source:
        return True
    return is_generated_server_module(source, policy)
