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

"""Pydantic models for rule metadata and the lint policy."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RuleLevel(str, Enum):
    """How a rule's findings are treated."""

    ERROR = "error"
    WARN = "warn"
    OFF = "off"


class RuleMeta(BaseModel):
    """Static description of a rule, mirroring ESLint's ``meta`` block."""

    id: str
    type: str = "problem"
    description: str = ""
    category: str = "Best Practices"
    recommended: bool = True
    messages: dict[str, str] = Field(default_factory=dict)
    fixable: Optional[str] = None  # no rule offers an autofix


class ForbiddenCall(BaseModel):
    """A three-segment ``object.member.method()`` invocation."""

    object_name: str = "ctx"
    member_name: str = "auth"
    method_name: str = "getUserIdentity"

    @property
    def dotted(self) -> str:
        return f"{self.object_name}.{self.member_name}.{self.method_name}"


def _default_rule_levels() -> dict[str, RuleLevel]:
    return {
        "no-direct-query-mutation": RuleLevel.ERROR,
        "no-getuseridentity-in-authenticated": RuleLevel.ERROR,
    }


class Policy(BaseModel):
    """Everything the rules match against. All matching is literal strings.

    Defaults describe a standard Convex project layout and are mirrored by
    ``rules/default_policy.yaml``.
    """

    # The one file allowed to call the raw factories and read the identity.
    exempt_file: str = "convex/auth.ts"
    # Substrings identifying the generated server module.
    generated_server_paths: list[str] = Field(
        default_factory=lambda: ["_generated/server", "convex/_generated/server"]
    )
    # Raw factory name -> message id reported when it is called directly.
    banned_calls: dict[str, str] = Field(
        default_factory=lambda: {
            "query": "useAuthenticatedQuery",
            "mutation": "useAuthenticatedMutation",
        }
    )
    wrapper_names: list[str] = Field(
        default_factory=lambda: ["authenticatedQuery", "authenticatedMutation"]
    )
    wrapper_module_paths: list[str] = Field(default_factory=lambda: ["./auth", "../auth"])
    # NOTE: broader than the exact spellings above, e.g. "./authz" also matches.
    wrapper_module_substring: str = "/auth"
    handler_property: str = "handler"
    forbidden_call: ForbiddenCall = Field(default_factory=ForbiddenCall)
    rules: dict[str, RuleLevel] = Field(default_factory=_default_rule_levels)

    def level_for(self, rule_id: str) -> RuleLevel:
        """Rules missing from the policy run at error level."""
        return self.rules.get(rule_id, RuleLevel.ERROR)

    @field_validator("rules", mode="before")
    @classmethod
    def coerce_yaml_off(cls, value):
        # YAML 1.1 reads an unquoted `off` as False
        if isinstance(value, dict):
            return {k: ("off" if v is False else v) for k, v in value.items()}
        return value
