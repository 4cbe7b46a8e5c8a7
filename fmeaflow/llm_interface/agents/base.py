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
Agent abstractions for running suggestion steps against an analysis tree.

An agent reads the current structure and the ids of its target from the
context and proposes a new structure in its output. Agents never mutate
the context they are given; the orchestrator moves proposals forward.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...analysis_tree.models import FmeaType, Project, Structure

logger = logging.getLogger(__name__)


@dataclass
class AgentContext:
    """
    The analysis snapshot a suggestion run works on.

    `node_id`, `function_id` and `failure_id` address the element, function
    and failure mode a step targets; steps that do not need them ignore them.
    """

    structure: Structure = ()
    fmea_type: FmeaType = FmeaType.DFMEA
    scope: str = ""
    node_id: Optional[str] = None
    function_id: Optional[str] = None
    failure_id: Optional[str] = None
    suggestions: Dict[str, Any] = field(default_factory=dict)
    timings: Dict[str, float] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.structure = tuple(self.structure)
        self.fmea_type = FmeaType(self.fmea_type)

    @classmethod
    def for_project(cls, project: Project, structure: Structure, **targets) -> "AgentContext":
        """Context seeded with the project's scope and FMEA type"""
        return cls(structure=structure, fmea_type=project.type, scope=project.scope, **targets)


@dataclass
class AgentOutput:
    """
    Result of one agent run. On success `structure` holds the proposed
    structure, which equals the input when nothing usable came back.
    """

    success: bool = True
    structure: Optional[Structure] = None
    suggestions: Any = None
    errors: List[str] = field(default_factory=list)


class Agent(ABC):
    """
    Base Agent class. Custom agents should inherit and implement `run`.
    """

    name: str

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def run(self, context: AgentContext) -> AgentOutput:
        """Execute one suggestion step against the context's structure."""


class AgentOrchestrator:
    """
    Runs agents in order, feeding each the structure produced by the one
    before. Stops at the first failure and leaves the context's structure
    as it was after the last successful agent.
    """

    def __init__(self, agents: List[Agent]):
        self.agents = agents

    def execute(self, context: AgentContext) -> AgentContext:
        for agent in self.agents:
            logger.debug(f"Running agent: {agent.name}")
            start_time = time.time()
            output = agent.run(context)
            context.timings[agent.name] = time.time() - start_time

            if not output.success:
                for error in output.errors or ["execution failed without details"]:
                    context.errors.append(f"{agent.name}: {error}")
                break

            context.structure = output.structure
            context.suggestions[agent.name] = output.suggestions

        return context
