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
Aggregation views

Read-only flattenings of an analysis tree for tables and exports. Rows are
produced depth-first (element, then its functions, then its children).
Failures without causes are not part of any row view.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from ..analysis_tree.editor import iter_nodes
from ..analysis_tree.models import (
    ActionStatus,
    FmeaAction,
    FmeaCause,
    FmeaFunction,
    StructureNode,
)
from ..analysis_tree.risk import ActionPriority


@dataclass(frozen=True)
class RiskRow:
    """One (failure, cause) pair with the context needed to display it"""

    node_id: str
    function_id: str
    failure_id: str
    cause_id: str
    element: str
    function: str
    requirement: str
    failure_mode: str
    effects: Tuple[str, ...]
    severity: int
    cause: str
    occurrence: int
    prevention_control: str
    detection_control: str
    detection: int
    action_priority: ActionPriority

    def base_cells(self, effects_separator: str = "; ") -> List[str]:
        """Cells in worksheet column order, followed by the AP column"""
        return [
            self.element,
            self.function,
            self.requirement,
            self.failure_mode,
            effects_separator.join(self.effects),
            str(self.severity),
            self.cause,
            str(self.occurrence),
            self.prevention_control,
            self.detection_control,
            str(self.detection),
            self.action_priority.value,
        ]


@dataclass(frozen=True)
class WorksheetRow:
    """One (cause, action) pair; `action` is None for a cause without actions"""

    risk: RiskRow
    action: Optional[FmeaAction] = None
    action_index: int = 0

    def action_cells(self, no_actions_label: str = "None") -> List[str]:
        if self.action is None:
            return [no_actions_label] + [""] * 7
        action = self.action
        return [
            action.description,
            action.responsible,
            action.target_date,
            action.taken_action,
            str(action.new_severity),
            str(action.new_occurrence),
            str(action.new_detection),
            action.new_action_priority.value,
        ]


def _risk_row(node, function, failure, cause) -> RiskRow:
    return RiskRow(
        node_id=node.id,
        function_id=function.id,
        failure_id=failure.id,
        cause_id=cause.id,
        element=node.name,
        function=function.description,
        requirement=function.requirements,
        failure_mode=failure.failure_mode,
        effects=failure.failure_effects,
        severity=cause.severity,
        cause=cause.description,
        occurrence=cause.occurrence,
        prevention_control=cause.prevention_control,
        detection_control=cause.detection_control,
        detection=cause.detection,
        action_priority=cause.action_priority,
    )


def _iter_causes(structure: Sequence[StructureNode]) -> Iterator[Tuple[RiskRow, FmeaCause]]:
    for node in iter_nodes(structure):
        for function in node.functions:
            for failure in function.failures:
                for cause in failure.failure_causes:
                    yield _risk_row(node, function, failure, cause), cause


def risk_rows(structure: Sequence[StructureNode]) -> List[RiskRow]:
    """One row per (failure, cause) pair"""
    return [row for row, _ in _iter_causes(structure)]


def worksheet_rows(structure: Sequence[StructureNode]) -> List[WorksheetRow]:
    """One row per (cause, action) pair, with a placeholder row for causes without actions"""
    rows: List[WorksheetRow] = []
    for risk, cause in _iter_causes(structure):
        if not cause.actions:
            rows.append(WorksheetRow(risk=risk))
            continue
        for index, action in enumerate(cause.actions):
            rows.append(WorksheetRow(risk=risk, action=action, action_index=index))
    return rows


def function_index(structure: Sequence[StructureNode]) -> List[Tuple[FmeaFunction, str]]:
    """Every function paired with the name of the element that owns it"""
    return [(function, node.name) for node in iter_nodes(structure) for function in node.functions]


def _max_depth(nodes: Sequence[StructureNode], depth: int = 1) -> int:
    if not nodes:
        return depth - 1
    return max(_max_depth(node.children, depth + 1) for node in nodes)


def analysis_statistics(structure: Sequence[StructureNode]) -> Dict[str, Any]:
    """Get statistics about the analysis tree"""
    priority_counts = {priority.value: 0 for priority in ActionPriority}
    residual_counts = {priority.value: 0 for priority in ActionPriority}
    stats = {
        "total_nodes": 0,
        "total_functions": 0,
        "total_failures": 0,
        "failures_without_causes": 0,
        "total_causes": 0,
        "total_actions": 0,
        "open_actions": 0,
    }

    for node in iter_nodes(structure):
        stats["total_nodes"] += 1
        stats["total_functions"] += len(node.functions)
        for function in node.functions:
            stats["total_failures"] += len(function.failures)
            for failure in function.failures:
                if not failure.failure_causes:
                    stats["failures_without_causes"] += 1
                for cause in failure.failure_causes:
                    stats["total_causes"] += 1
                    priority_counts[cause.action_priority.value] += 1
                    for action in cause.actions:
                        stats["total_actions"] += 1
                        residual_counts[action.new_action_priority.value] += 1
                        if action.status == ActionStatus.OPEN:
                            stats["open_actions"] += 1

    stats["max_depth"] = _max_depth(tuple(structure))
    stats["action_priority"] = priority_counts
    stats["residual_action_priority"] = residual_counts
    return stats
