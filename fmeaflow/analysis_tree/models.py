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
FMEA Analysis Tree Model

Entity definitions for the AIAG-VDA analysis tree:

    StructureNode -> FmeaFunction -> FmeaFailure -> FmeaCause -> FmeaAction

All entities are frozen dataclasses whose child sequences are tuples, so a
tree snapshot can never be changed in place. Edits produce new values via
`dataclasses.replace` (see `editor.py`).

Action priorities are non-init fields computed in `__post_init__` from the
S/O/D triple, which keeps them in sync with their scores for every
constructed or replaced entity.
"""

import datetime
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .risk import ActionPriority, classify, validate_score


def new_id() -> str:
    """Generate a fresh entity id"""
    return str(uuid.uuid4())


class FmeaType(str, Enum):
    DFMEA = "DFMEA"
    PFMEA = "PFMEA"
    FMEA_MSR = "FMEA-MSR"


class NodeKind(str, Enum):
    SYSTEM = "system"
    SUBSYSTEM = "subsystem"
    COMPONENT = "component"
    PROCESS_STEP = "process_step"
    WORK_ELEMENT = "work_element"


class ActionStatus(str, Enum):
    OPEN = "Open"
    COMPLETED = "Completed"
    DISCARDED = "Discarded"


def _freeze(instance: Any, name: str) -> None:
    object.__setattr__(instance, name, tuple(getattr(instance, name)))


@dataclass(frozen=True)
class Project:
    """Analysis metadata. Independent of the tree."""

    id: str = field(default_factory=new_id)
    name: str = "New Project"
    number: str = "FMEA-001"
    type: FmeaType = FmeaType.DFMEA
    manager: str = ""
    team_members: str = ""
    date: str = field(default_factory=lambda: datetime.date.today().isoformat())
    scope: str = ""

    def __post_init__(self):
        object.__setattr__(self, "type", FmeaType(self.type))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "number": self.number,
            "type": self.type.value,
            "manager": self.manager,
            "teamMembers": self.team_members,
            "date": self.date,
            "scope": self.scope,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        defaults = cls()
        return cls(
            id=data.get("id") or defaults.id,
            name=data.get("name", defaults.name),
            number=data.get("number", defaults.number),
            type=data.get("type", defaults.type),
            manager=data.get("manager", ""),
            team_members=data.get("teamMembers", ""),
            date=data.get("date", defaults.date),
            scope=data.get("scope", ""),
        )


@dataclass(frozen=True)
class FmeaAction:
    """
    Corrective action for a cause, with the re-rating after mitigation.

    `new_action_priority` is derived from the re-rating triple.
    """

    cause_id: str
    id: str = field(default_factory=new_id)
    description: str = ""
    responsible: str = ""
    target_date: str = ""
    status: ActionStatus = ActionStatus.OPEN
    taken_action: str = ""
    completion_date: str = ""
    new_severity: int = 0
    new_occurrence: int = 0
    new_detection: int = 0
    new_action_priority: ActionPriority = field(init=False)

    def __post_init__(self):
        validate_score(self.new_severity, "new_severity")
        validate_score(self.new_occurrence, "new_occurrence")
        validate_score(self.new_detection, "new_detection")
        object.__setattr__(self, "status", ActionStatus(self.status))
        object.__setattr__(
            self,
            "new_action_priority",
            classify(self.new_severity, self.new_occurrence, self.new_detection),
        )

    @classmethod
    def for_cause(cls, cause: "FmeaCause", **fields: Any) -> "FmeaAction":
        """Create an action whose re-rating starts from the cause's current scores"""
        fields.setdefault("new_severity", cause.severity)
        fields.setdefault("new_occurrence", cause.occurrence)
        fields.setdefault("new_detection", cause.detection)
        return cls(cause_id=cause.id, **fields)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "causeId": self.cause_id,
            "description": self.description,
            "responsible": self.responsible,
            "targetDate": self.target_date,
            "status": self.status.value,
            "takenAction": self.taken_action,
            "completionDate": self.completion_date,
            "newSeverity": self.new_severity,
            "newOccurrence": self.new_occurrence,
            "newDetection": self.new_detection,
            "newActionPriority": self.new_action_priority.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FmeaAction":
        return cls(
            id=data["id"],
            cause_id=data.get("causeId", ""),
            description=data.get("description", ""),
            responsible=data.get("responsible", ""),
            target_date=data.get("targetDate", ""),
            status=data.get("status", ActionStatus.OPEN),
            taken_action=data.get("takenAction", ""),
            completion_date=data.get("completionDate", ""),
            new_severity=data.get("newSeverity", 0),
            new_occurrence=data.get("newOccurrence", 0),
            new_detection=data.get("newDetection", 0),
        )


@dataclass(frozen=True)
class FmeaCause:
    """
    Failure cause carrying the risk ratings of its worksheet row.

    Severity is inherited from the failure effect but rated per cause, as in
    the AIAG-VDA worksheet.
    """

    failure_id: str
    id: str = field(default_factory=new_id)
    description: str = ""
    prevention_control: str = ""
    detection_control: str = ""
    severity: int = 0
    occurrence: int = 0
    detection: int = 0
    actions: Tuple[FmeaAction, ...] = ()
    action_priority: ActionPriority = field(init=False)

    def __post_init__(self):
        validate_score(self.severity, "severity")
        validate_score(self.occurrence, "occurrence")
        validate_score(self.detection, "detection")
        _freeze(self, "actions")
        object.__setattr__(
            self,
            "action_priority",
            classify(self.severity, self.occurrence, self.detection),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "failureId": self.failure_id,
            "description": self.description,
            "preventionControl": self.prevention_control,
            "detectionControl": self.detection_control,
            "severity": self.severity,
            "occurrence": self.occurrence,
            "detection": self.detection,
            "actionPriority": self.action_priority.value,
            "actions": [action.to_dict() for action in self.actions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FmeaCause":
        return cls(
            id=data["id"],
            failure_id=data.get("failureId", ""),
            description=data.get("description", ""),
            prevention_control=data.get("preventionControl", ""),
            detection_control=data.get("detectionControl", ""),
            severity=data.get("severity", 0),
            occurrence=data.get("occurrence", 0),
            detection=data.get("detection", 0),
            actions=tuple(FmeaAction.from_dict(a) for a in data.get("actions", [])),
        )


@dataclass(frozen=True)
class FmeaFailure:
    """Failure mode of a function with its effects and causes"""

    function_id: str
    id: str = field(default_factory=new_id)
    failure_mode: str = ""
    failure_effects: Tuple[str, ...] = ()
    failure_causes: Tuple[FmeaCause, ...] = ()

    def __post_init__(self):
        _freeze(self, "failure_effects")
        _freeze(self, "failure_causes")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "functionId": self.function_id,
            "failureMode": self.failure_mode,
            "failureEffects": list(self.failure_effects),
            "failureCauses": [cause.to_dict() for cause in self.failure_causes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FmeaFailure":
        return cls(
            id=data["id"],
            function_id=data.get("functionId", ""),
            failure_mode=data.get("failureMode", ""),
            failure_effects=tuple(data.get("failureEffects", [])),
            failure_causes=tuple(
                FmeaCause.from_dict(c) for c in data.get("failureCauses", [])
            ),
        )


@dataclass(frozen=True)
class FmeaFunction:
    """Function of a structure element together with its requirements"""

    node_id: str
    id: str = field(default_factory=new_id)
    description: str = ""
    requirements: str = ""
    failures: Tuple[FmeaFailure, ...] = ()

    def __post_init__(self):
        _freeze(self, "failures")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nodeId": self.node_id,
            "description": self.description,
            "requirements": self.requirements,
            "failures": [failure.to_dict() for failure in self.failures],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FmeaFunction":
        return cls(
            id=data["id"],
            node_id=data.get("nodeId", ""),
            description=data.get("description", ""),
            requirements=data.get("requirements", ""),
            failures=tuple(FmeaFailure.from_dict(f) for f in data.get("failures", [])),
        )


@dataclass(frozen=True)
class StructureNode:
    """
    One system, subsystem, component, process step or work element.
    `parent_id` is None only for top-level nodes.
    """

    name: str
    id: str = field(default_factory=new_id)
    parent_id: Optional[str] = None
    kind: NodeKind = NodeKind.COMPONENT
    children: Tuple["StructureNode", ...] = ()
    functions: Tuple[FmeaFunction, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "kind", NodeKind(self.kind))
        _freeze(self, "children")
        _freeze(self, "functions")

    @classmethod
    def create(
        cls,
        name: str = "New Item",
        parent_id: Optional[str] = None,
        kind: Optional[NodeKind] = None,
    ) -> "StructureNode":
        """Create an empty node; top-level nodes default to systems"""
        if kind is None:
            kind = NodeKind.COMPONENT if parent_id else NodeKind.SYSTEM
        return cls(name=name, parent_id=parent_id, kind=kind)

    def is_leaf(self) -> bool:
        return len(self.children) == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "parentId": self.parent_id,
            "name": self.name,
            "type": self.kind.value,
            "children": [child.to_dict() for child in self.children],
            "functions": [function.to_dict() for function in self.functions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructureNode":
        return cls(
            id=data["id"],
            parent_id=data.get("parentId"),
            name=data.get("name", ""),
            kind=data.get("type", NodeKind.COMPONENT),
            children=tuple(cls.from_dict(c) for c in data.get("children", [])),
            functions=tuple(
                FmeaFunction.from_dict(f) for f in data.get("functions", [])
            ),
        )


Structure = Tuple[StructureNode, ...]


def structure_to_list(structure: Structure) -> list:
    return [node.to_dict() for node in structure]


def structure_from_list(data: list) -> Structure:
    return tuple(StructureNode.from_dict(item) for item in data)
