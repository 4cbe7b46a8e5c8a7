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
Boundary to the external suggestion service.
"""

from .agents import (
    AgentContext,
    AgentOrchestrator,
    AgentOutput,
    FailureSuggestionAgent,
    FunctionSuggestionAgent,
    RiskChainSuggestionAgent,
    StructureSuggestionAgent,
)
from .client import LLMClient
from .merge import (
    merge_failure_suggestions,
    merge_function_suggestions,
    merge_risk_suggestion,
    merge_structure_suggestions,
)
from .parser import FunctionSuggestion, RiskSuggestion, SuggestionParser
from .prompts import PromptTemplateManager
from .service import SuggestionService, SuggestionServiceError

__all__ = [
    "AgentContext",
    "AgentOrchestrator",
    "AgentOutput",
    "FailureSuggestionAgent",
    "FunctionSuggestionAgent",
    "FunctionSuggestion",
    "LLMClient",
    "PromptTemplateManager",
    "RiskChainSuggestionAgent",
    "RiskSuggestion",
    "StructureSuggestionAgent",
    "SuggestionParser",
    "SuggestionService",
    "SuggestionServiceError",
    "merge_failure_suggestions",
    "merge_function_suggestions",
    "merge_risk_suggestion",
    "merge_structure_suggestions",
]
