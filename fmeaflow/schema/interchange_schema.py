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
Full-project interchange schema using Pydantic

Validates `{"project": ..., "structure": [...]}` documents before they are
turned into analysis tree entities. Field aliases are the camelCase keys of
the interchange format; missing optional fields get their defaults.
"""

from typing import Iterator, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Score = int
PriorityCode = Literal["L", "M", "H"]


class _InterchangeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ActionSchema(_InterchangeModel):
    """Corrective action with its re-rating"""

    id: str = Field(..., min_length=1, description="Action id")
    cause_id: str = Field("", alias="causeId", description="Owning cause id")
    description: str = ""
    responsible: str = ""
    target_date: str = Field("", alias="targetDate")
    status: Literal["Open", "Completed", "Discarded"] = "Open"
    taken_action: str = Field("", alias="takenAction")
    completion_date: str = Field("", alias="completionDate")
    new_severity: Score = Field(0, alias="newSeverity", ge=0, le=10)
    new_occurrence: Score = Field(0, alias="newOccurrence", ge=0, le=10)
    new_detection: Score = Field(0, alias="newDetection", ge=0, le=10)
    new_action_priority: Optional[PriorityCode] = Field(
        None, alias="newActionPriority", description="Recomputed on load"
    )


class CauseSchema(_InterchangeModel):
    """Failure cause with its risk ratings"""

    id: str = Field(..., min_length=1, description="Cause id")
    failure_id: str = Field("", alias="failureId")
    description: str = ""
    prevention_control: str = Field("", alias="preventionControl")
    detection_control: str = Field("", alias="detectionControl")
    severity: Score = Field(0, ge=0, le=10)
    occurrence: Score = Field(0, ge=0, le=10)
    detection: Score = Field(0, ge=0, le=10)
    action_priority: Optional[PriorityCode] = Field(
        None, alias="actionPriority", description="Recomputed on load"
    )
    actions: List[ActionSchema] = Field(default_factory=list)


class FailureSchema(_InterchangeModel):
    id: str = Field(..., min_length=1)
    function_id: str = Field("", alias="functionId")
    failure_mode: str = Field("", alias="failureMode")
    failure_effects: List[str] = Field(default_factory=list, alias="failureEffects")
    failure_causes: List[CauseSchema] = Field(default_factory=list, alias="failureCauses")


class FunctionSchema(_InterchangeModel):
    id: str = Field(..., min_length=1)
    node_id: str = Field("", alias="nodeId")
    description: str = ""
    requirements: str = ""
    failures: List[FailureSchema] = Field(default_factory=list)


class StructureNodeSchema(_InterchangeModel):
    """Structure element with its full subtree inline"""

    id: str = Field(..., min_length=1)
    parent_id: Optional[str] = Field(None, alias="parentId")
    name: str = ""
    type: Literal[
        "system", "subsystem", "component", "process_step", "work_element"
    ] = "component"
    children: List["StructureNodeSchema"] = Field(default_factory=list)
    functions: List[FunctionSchema] = Field(default_factory=list)


class ProjectSchema(_InterchangeModel):
    id: str = ""
    name: str = "New Project"
    number: str = ""
    type: Literal["DFMEA", "PFMEA", "FMEA-MSR"] = "DFMEA"
    manager: str = ""
    team_members: str = Field("", alias="teamMembers")
    date: str = ""
    scope: str = ""


def _iter_ids(nodes: List[StructureNodeSchema]) -> Iterator[str]:
    for node in nodes:
        yield node.id
        for function in node.functions:
            yield function.id
            for failure in function.failures:
                yield failure.id
                for cause in failure.failure_causes:
                    yield cause.id
                    for action in cause.actions:
                        yield action.id
        yield from _iter_ids(node.children)


class InterchangeDocumentSchema(_InterchangeModel):
    """Complete interchange document: project metadata plus the analysis tree"""

    project: ProjectSchema = Field(..., description="Project metadata")
    structure: List[StructureNodeSchema] = Field(
        ..., description="Top-level structure elements, full subtree inline"
    )

    @field_validator("structure")
    @classmethod
    def validate_top_level_nodes(cls, v):
        for node in v:
            if node.parent_id is not None:
                raise ValueError(f"Top-level node '{node.id}' must not have a parentId")
        return v

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "InterchangeDocumentSchema":
        seen = set()
        for entity_id in _iter_ids(self.structure):
            if entity_id in seen:
                raise ValueError(f"Duplicate entity id in structure: {entity_id}")
            seen.add(entity_id)
        return self


StructureNodeSchema.model_rebuild()
