# Copyright (c) Nex-AGI. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Worksheet Importer

Rebuilds an analysis tree from a flat FMEA worksheet table, one row per line:

    element, function, requirement, failure mode, effect, S,
    cause, O, prevention control, detection control, D

Empty cells and cells holding a lone quote mark mean "same as the row above"
for the element, function and failure columns. Elements, functions, failures
and causes are deduplicated by exact text match within their parent, so
repeated rows only ever add new effects and new causes.

The "last seen" context lives in an ImportState accumulator that is passed
through the row loop explicitly; the importer itself holds configuration
only and can be reused across imports.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..analysis_tree.models import (
    FmeaCause,
    FmeaFailure,
    FmeaFunction,
    NodeKind,
    Structure,
    StructureNode,
    new_id,
)
from ..analysis_tree.risk import SCORE_MAX, SCORE_MIN
from ..config.settings import IMPORT_CONFIG

logger = logging.getLogger(__name__)

COLUMNS = (
    "element",
    "function",
    "requirement",
    "failure_mode",
    "effect",
    "severity",
    "cause",
    "occurrence",
    "prevention_control",
    "detection_control",
    "detection",
)
ELEMENT, FUNCTION, REQUIREMENT, FAILURE_MODE, EFFECT, SEVERITY = range(6)
CAUSE, OCCURRENCE, PREVENTION, DETECTION_CONTROL, DETECTION = range(6, 11)


# =========================================================
# Cell parsing
# =========================================================


def split_row(line: str, delimiter: str = ",", quote: str = '"') -> List[str]:
    """
    Split one table line into trimmed cells.

    Quoted fields may contain the delimiter, and a doubled quote inside a
    quoted field is a literal quote. A quote mark standing alone in its cell
    is returned as-is so callers can treat it as the carry-forward sentinel.
    """
    cells: List[str] = []
    i, n = 0, len(line)
    while True:
        while i < n and line[i] in " \t":
            i += 1

        if i < n and line[i] == quote:
            after = i + 1
            while after < n and line[after] in " \t":
                after += 1
            # A quote closing later on the line opens a quoted field instead
            lone = after >= n or line[after] == delimiter
            if lone and (after == i + 1 or quote not in line[after:]):
                cells.append(quote)
                i = after
            else:
                buf: List[str] = []
                i += 1
                while i < n:
                    ch = line[i]
                    if ch == quote:
                        if i + 1 < n and line[i + 1] == quote:
                            buf.append(quote)
                            i += 2
                            continue
                        i += 1
                        break
                    buf.append(ch)
                    i += 1
                # Stray text between a closing quote and the next delimiter is kept
                while i < n and line[i] != delimiter:
                    buf.append(line[i])
                    i += 1
                cells.append("".join(buf).strip())
        else:
            end = line.find(delimiter, i)
            if end == -1:
                end = n
            cells.append(line[i:end].strip())
            i = end

        if i >= n:
            break
        i += 1
        if i == n:
            cells.append("")
            break
    return cells


def parse_score(cell: Optional[str]) -> int:
    """Parse a 0-10 rating cell; anything unparsable is 0, out-of-range values are clamped"""
    if not cell:
        return 0
    try:
        value = int(float(cell))
    except (ValueError, OverflowError):
        logger.debug(f"Unparsable score cell {cell!r}, using 0")
        return 0
    return max(SCORE_MIN, min(SCORE_MAX, value))


# =========================================================
# Draft entities (mutable while the table is being read)
# =========================================================


@dataclass
class _FailureDraft:
    function_id: str
    failure_mode: str
    id: str = field(default_factory=new_id)
    effects: List[str] = field(default_factory=list)
    causes: List[FmeaCause] = field(default_factory=list)

    def find_cause(self, description: str) -> Optional[FmeaCause]:
        return next((c for c in self.causes if c.description == description), None)

    def build(self) -> FmeaFailure:
        return FmeaFailure(
            id=self.id,
            function_id=self.function_id,
            failure_mode=self.failure_mode,
            failure_effects=tuple(self.effects),
            failure_causes=tuple(self.causes),
        )


@dataclass
class _FunctionDraft:
    node_id: str
    description: str
    requirements: str = ""
    id: str = field(default_factory=new_id)
    failures: List[_FailureDraft] = field(default_factory=list)

    def find_failure(self, failure_mode: str) -> Optional[_FailureDraft]:
        return next((f for f in self.failures if f.failure_mode == failure_mode), None)

    def build(self) -> FmeaFunction:
        return FmeaFunction(
            id=self.id,
            node_id=self.node_id,
            description=self.description,
            requirements=self.requirements,
            failures=tuple(f.build() for f in self.failures),
        )


@dataclass
class _ElementDraft:
    name: str
    kind: NodeKind
    id: str = field(default_factory=new_id)
    functions: List[_FunctionDraft] = field(default_factory=list)

    def find_function(self, description: str) -> Optional[_FunctionDraft]:
        return next((f for f in self.functions if f.description == description), None)

    def build(self) -> StructureNode:
        return StructureNode(
            id=self.id,
            parent_id=None,
            name=self.name,
            kind=self.kind,
            functions=tuple(f.build() for f in self.functions),
        )


# =========================================================
# Accumulator and result
# =========================================================


@dataclass
class ImportState:
    """Everything the importer carries from one row to the next"""

    elements: List[_ElementDraft] = field(default_factory=list)
    last_element: Optional[_ElementDraft] = None
    last_function: Optional[_FunctionDraft] = None
    last_requirement: str = ""
    last_failure: Optional[_FailureDraft] = None
    element_count: int = 0
    function_count: int = 0
    failure_count: int = 0
    cause_count: int = 0
    skipped_rows: int = 0

    def find_element(self, name: str) -> Optional[_ElementDraft]:
        return next((e for e in self.elements if e.name == name), None)

    def to_result(self) -> "ImportResult":
        return ImportResult(
            structure=tuple(e.build() for e in self.elements),
            elements=self.element_count,
            functions=self.function_count,
            failures=self.failure_count,
            causes=self.cause_count,
            skipped_rows=self.skipped_rows,
        )


@dataclass(frozen=True)
class ImportResult:
    """
    Imported tree plus counts of distinct entities created.
    An empty result is falsy: the table contained nothing importable.
    """

    structure: Structure
    elements: int = 0
    functions: int = 0
    failures: int = 0
    causes: int = 0
    skipped_rows: int = 0

    @property
    def is_empty(self) -> bool:
        return self.elements == 0

    def __bool__(self) -> bool:
        return not self.is_empty

    def summary(self) -> Dict[str, int]:
        return {
            "elements": self.elements,
            "functions": self.functions,
            "failures": self.failures,
            "causes": self.causes,
            "skipped_rows": self.skipped_rows,
        }


# =========================================================
# Importer
# =========================================================


class WorksheetImporter:
    """
    Parses delimited worksheet text into an analysis tree.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        settings = {**IMPORT_CONFIG, **(config or {})}
        self.delimiter: str = settings["delimiter"]
        self.sentinel: str = settings["carry_forward_sentinel"]
        self.no_cause: str = settings["no_cause_sentinel"]
        self.max_header_lines: int = settings["max_header_lines"]
        self.min_header_matches: int = settings["min_header_matches"]
        self.element_kind = NodeKind(settings["element_kind"])
        self.header_keywords = frozenset(k.lower() for k in settings["header_keywords"])

    # Public API --------------------------------------------------------

    def parse(self, text: str) -> ImportResult:
        """Parse a whole table; header lines are detected and skipped"""
        lines = [line for line in text.lstrip("\ufeff").splitlines() if line.strip()]
        rows = [split_row(line, self.delimiter) for line in lines]

        header_lines = 0
        while (
            header_lines < min(self.max_header_lines, len(rows))
            and self.is_header(rows[header_lines])
        ):
            header_lines += 1
        if header_lines:
            logger.debug(f"Skipping {header_lines} header line(s)")

        state = ImportState()
        for cells in rows[header_lines:]:
            self.feed_row(state, cells)

        result = state.to_result()
        if result:
            logger.info(
                f"Imported worksheet: {result.elements} elements, {result.functions} functions, "
                f"{result.failures} failures, {result.causes} causes"
            )
        else:
            logger.warning("Worksheet contained no importable rows")
        return result

    def is_header(self, cells: List[str]) -> bool:
        matches = sum(1 for cell in cells if cell.strip().lower() in self.header_keywords)
        return matches >= self.min_header_matches

    def feed_row(self, state: ImportState, cells: List[str]) -> None:
        """Fold one row of cells into the accumulator"""
        cells = list(cells[: len(COLUMNS)]) + [""] * (len(COLUMNS) - len(cells))

        if sum(1 for cell in cells if cell) < 2:
            state.skipped_rows += 1
            logger.debug(f"Skipping row with fewer than two cells: {cells}")
            return

        element = self._resolve_element(state, cells[ELEMENT])
        if element is None:
            state.skipped_rows += 1
            logger.debug(f"Skipping row without an element to carry forward: {cells}")
            return

        function = self._resolve_function(state, element, cells[FUNCTION], cells[REQUIREMENT])
        if function is None:
            return

        failure = self._resolve_failure(state, function, cells[FAILURE_MODE])
        if failure is None:
            return

        effect = cells[EFFECT]
        if effect and not self._carries_forward(effect) and effect not in failure.effects:
            failure.effects.append(effect)

        self._add_cause(state, failure, cells)

    # Row helpers -------------------------------------------------------

    def _carries_forward(self, cell: str) -> bool:
        return not cell or cell == self.sentinel

    def _plain(self, cell: str) -> str:
        return "" if cell == self.sentinel else cell

    def _resolve_element(self, state: ImportState, cell: str) -> Optional[_ElementDraft]:
        if self._carries_forward(cell):
            return state.last_element

        element = state.find_element(cell)
        if element is None:
            element = _ElementDraft(name=cell, kind=self.element_kind)
            state.elements.append(element)
            state.element_count += 1
        state.last_element = element
        return element

    def _resolve_function(
        self, state: ImportState, element: _ElementDraft, cell: str, requirement: str
    ) -> Optional[_FunctionDraft]:
        if self._carries_forward(cell):
            last = state.last_function
            # The remembered function only applies within its own element
            return last if last is not None and last.node_id == element.id else None

        function = element.find_function(cell)
        if function is None:
            if requirement == self.sentinel:
                requirement = state.last_requirement
            function = _FunctionDraft(node_id=element.id, description=cell, requirements=requirement)
            element.functions.append(function)
            state.function_count += 1
        state.last_function = function
        state.last_requirement = function.requirements
        return function

    def _resolve_failure(
        self, state: ImportState, function: _FunctionDraft, cell: str
    ) -> Optional[_FailureDraft]:
        if self._carries_forward(cell):
            last = state.last_failure
            return last if last is not None and last.function_id == function.id else None

        failure = function.find_failure(cell)
        if failure is None:
            failure = _FailureDraft(function_id=function.id, failure_mode=cell)
            function.failures.append(failure)
            state.failure_count += 1
        state.last_failure = failure
        return failure

    def _add_cause(self, state: ImportState, failure: _FailureDraft, cells: List[str]) -> None:
        description = cells[CAUSE]
        if self._carries_forward(description) or description == self.no_cause:
            return
        if failure.find_cause(description) is not None:
            return

        failure.causes.append(
            FmeaCause(
                failure_id=failure.id,
                description=description,
                prevention_control=self._plain(cells[PREVENTION]),
                detection_control=self._plain(cells[DETECTION_CONTROL]),
                severity=parse_score(self._plain(cells[SEVERITY])),
                occurrence=parse_score(self._plain(cells[OCCURRENCE])),
                detection=parse_score(self._plain(cells[DETECTION])),
            )
        )
        state.cause_count += 1


def import_worksheet(text: str, config: Optional[Dict[str, Any]] = None) -> ImportResult:
    """Parse worksheet text with the default (or given) import configuration"""
    return WorksheetImporter(config).parse(text)
