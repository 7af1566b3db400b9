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

"""Import alias table — local binding name -> canonical imported name."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from convexguard.scanner.estree import NodeKind, identifier_name, kind_of, literal_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Binding:
    """One named import that survived the module and symbol filters."""

    local_name: str
    canonical_name: str
    source_module: str


class ImportAliasTable:
    """Per-file map of tracked named imports.

    Only sources accepted by ``source_matches`` and imported names in
    ``symbols`` are recorded. Examples:
      import { query } from "./_generated/server"       => {"query": "query"}
      import { query as q } from "./_generated/server"  => {"q": "query"}

    Default and namespace imports are never recorded. There is no removal;
    a second import of the same local name replaces the first.
    """

    def __init__(self, source_matches: Callable[[str], bool], symbols: Iterable[str]) -> None:
        self._source_matches = source_matches
        self._symbols = frozenset(symbols)
        self._bindings: dict[str, Binding] = {}

    def register(self, node: Any) -> None:
        """Record the tracked specifiers of an ImportDeclaration."""
        if kind_of(node) is not NodeKind.IMPORT_DECLARATION:
            return
        source = literal_string(node.get("source"))
        if source is None or not self._source_matches(source):
            return
        specifiers = node.get("specifiers")
        if not isinstance(specifiers, list):
            return

        for specifier in specifiers:
            if kind_of(specifier) is not NodeKind.IMPORT_SPECIFIER:
                continue
            imported_node = specifier.get("imported")
            # ES2022 allows string-named imports: import { "query" as q }
            imported = identifier_name(imported_node) or literal_string(imported_node)
            local = identifier_name(specifier.get("local"))
            if imported not in self._symbols or not local:
                continue
            if local in self._bindings:
                logger.debug("Import of %r replaces an earlier binding", local)
            self._bindings[local] = Binding(local, imported, source)

    def resolve(self, local_name: Optional[str]) -> Optional[str]:
        """Canonical name bound to ``local_name``, or None if untracked."""
        if local_name is None:
            return None
        binding = self._bindings.get(local_name)
        return binding.canonical_name if binding else None

    def binding(self, local_name: str) -> Optional[Binding]:
        return self._bindings.get(local_name)

    def __contains__(self, local_name: object) -> bool:
        return isinstance(local_name, str) and local_name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)
