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
Agents that ask the suggestion service for one analysis step and merge the
reply into the structure.
"""

from __future__ import annotations

import logging
import time
from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Tuple

from ...analysis_tree.editor import find_node
from ...analysis_tree.models import FmeaFailure, FmeaFunction
from ..merge import (
    merge_failure_suggestions,
    merge_function_suggestions,
    merge_risk_suggestion,
    merge_structure_suggestions,
)
from ..service import SuggestionServiceError
from .base import Agent, AgentContext, AgentOutput

if TYPE_CHECKING:
    from ..service import SuggestionService

logger = logging.getLogger(__name__)


def _resolve_function(context: AgentContext) -> Optional[FmeaFunction]:
    node = find_node(context.structure, context.node_id)
    if node is None:
        return None
    return next((f for f in node.functions if f.id == context.function_id), None)


def _resolve_failure(context: AgentContext) -> Optional[FmeaFailure]:
    function = _resolve_function(context)
    if function is None:
        return None
    return next((f for f in function.failures if f.id == context.failure_id), None)


class SuggestionAgent(Agent):
    """
    Shared run loop: resolve the prompt input, call the service, merge.

    Subclasses implement `_prompt_input` (returning the text to send, or an
    error message) plus `_request` and `_merge`.
    """

    def __init__(self, name: str, service: "SuggestionService"):
        super().__init__(name)
        self.service = service

    @abstractmethod
    def _prompt_input(self, context: AgentContext) -> Tuple[Optional[str], Optional[str]]:
        """Text to send for this step, or an error when the target is missing"""

    @abstractmethod
    def _request(self, text: str, fmea_type: str) -> Any:
        """Ask the service for suggestions"""

    @abstractmethod
    def _merge(self, context: AgentContext, suggestions: Any):
        """Merge non-empty suggestions into the context's structure"""

    def run(self, context: AgentContext) -> AgentOutput:
        structure = context.structure
        text, error = self._prompt_input(context)
        if error:
            logger.warning(f"{self.name} skipped: {error}")
            return AgentOutput(success=False, errors=[error])

        start_time = time.time()
        try:
            suggestions = self._request(text, context.fmea_type.value)
        except SuggestionServiceError as e:
            return AgentOutput(success=False, errors=[str(e)])
        elapsed = time.time() - start_time

        if not suggestions:
            logger.warning(f"{self.name}: no usable suggestions, structure unchanged")
            return AgentOutput(success=True, structure=structure, suggestions=suggestions)

        updated = self._merge(context, suggestions)
        logger.info(f"{self.name}: merged suggestions in {elapsed:.2f}s")
        return AgentOutput(success=True, structure=updated, suggestions=suggestions)


class StructureSuggestionAgent(SuggestionAgent):
    """Suggests child elements for the project scope"""

    def __init__(self, service: "SuggestionService"):
        super().__init__("structure_suggestion", service)

    def _prompt_input(self, context):
        scope = (context.scope or "").strip()
        if not scope:
            return None, "Project scope is empty; define the scope first"
        return scope, None

    def _request(self, text, fmea_type):
        return self.service.suggest_structure(text, fmea_type)

    def _merge(self, context, suggestions):
        return merge_structure_suggestions(context.structure, context.scope, suggestions)


class FunctionSuggestionAgent(SuggestionAgent):
    """Suggests functions with requirements for the element `node_id`"""

    def __init__(self, service: "SuggestionService"):
        super().__init__("function_suggestion", service)

    def _prompt_input(self, context):
        node = find_node(context.structure, context.node_id)
        if node is None:
            return None, f"Structure element not found: {context.node_id}"
        return node.name, None

    def _request(self, text, fmea_type):
        return self.service.suggest_functions(text, fmea_type)

    def _merge(self, context, suggestions):
        return merge_function_suggestions(context.structure, context.node_id, suggestions)


class FailureSuggestionAgent(SuggestionAgent):
    """Suggests failure modes for the function `function_id` of `node_id`"""

    def __init__(self, service: "SuggestionService"):
        super().__init__("failure_suggestion", service)

    def _prompt_input(self, context):
        function = _resolve_function(context)
        if function is None:
            return None, f"Function not found: {context.function_id} in element {context.node_id}"
        return function.description, None

    def _request(self, text, fmea_type):
        return self.service.suggest_failures(text, fmea_type)

    def _merge(self, context, suggestions):
        return merge_failure_suggestions(
            context.structure, context.node_id, context.function_id, suggestions
        )


class RiskChainSuggestionAgent(SuggestionAgent):
    """Suggests an effect, a cause and controls for the failure `failure_id`"""

    def __init__(self, service: "SuggestionService"):
        super().__init__("risk_chain_suggestion", service)

    def _prompt_input(self, context):
        failure = _resolve_failure(context)
        if failure is None:
            return None, (
                f"Failure not found: {context.failure_id} under "
                f"{context.node_id}/{context.function_id}"
            )
        return failure.failure_mode, None

    def _request(self, text, fmea_type):
        return self.service.suggest_risk_chain(text, fmea_type)

    def _merge(self, context, suggestions):
        return merge_risk_suggestion(
            context.structure,
            context.node_id,
            context.function_id,
            context.failure_id,
            suggestions,
        )
