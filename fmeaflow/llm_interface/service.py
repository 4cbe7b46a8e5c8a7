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
Suggestion service: prompt, call and parse for each analysis step.
"""

import logging
from typing import List, Optional

import openai

from .client import LLMClient
from .parser import FunctionSuggestion, RiskSuggestion, SuggestionParser
from .prompts import SYSTEM_PROMPT, PromptTemplateManager

logger = logging.getLogger(__name__)


class SuggestionServiceError(RuntimeError):
    """The completion service is unavailable or the call failed"""


class SuggestionService:
    """
    Requests suggestions from the completion service.

    Replies that cannot be used come back as empty results; only an
    unavailable or failing service raises SuggestionServiceError.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        prompt_manager: Optional[PromptTemplateManager] = None,
        parser: Optional[SuggestionParser] = None,
    ):
        self.llm_client = llm_client
        self.prompt_manager = prompt_manager or PromptTemplateManager()
        self.parser = parser or SuggestionParser()

    @classmethod
    def from_config(cls, config=None) -> "SuggestionService":
        return cls(llm_client=LLMClient.from_config(config))

    @property
    def available(self) -> bool:
        return self.llm_client is not None

    def _complete(self, prompt: str, step: str) -> str:
        if self.llm_client is None:
            raise SuggestionServiceError("API key not found; suggestion service unavailable")
        try:
            response = self.llm_client.generate_completion(prompt, system_prompt=SYSTEM_PROMPT)
        except openai.OpenAIError as e:
            logger.error(f"Suggestion call for {step} failed: {e}")
            raise SuggestionServiceError(f"{step} suggestion failed: {e}") from e
        logger.debug(f"Received {step} suggestion reply ({len(response or '')} characters)")
        return response

    def suggest_structure(self, scope: str, fmea_type: str) -> List[str]:
        prompt = self.prompt_manager.format_structure_prompt(scope, fmea_type)
        return self.parser.parse_structure(self._complete(prompt, "structure"))

    def suggest_functions(self, item_name: str, fmea_type: str) -> List[FunctionSuggestion]:
        prompt = self.prompt_manager.format_functions_prompt(item_name, fmea_type)
        return self.parser.parse_functions(self._complete(prompt, "functions"))

    def suggest_failures(self, function_description: str, fmea_type: str) -> List[str]:
        prompt = self.prompt_manager.format_failures_prompt(function_description, fmea_type)
        return self.parser.parse_failure_modes(self._complete(prompt, "failures"))

    def suggest_risk_chain(self, failure_mode: str, fmea_type: str) -> Optional[RiskSuggestion]:
        prompt = self.prompt_manager.format_risk_chain_prompt(failure_mode, fmea_type)
        return self.parser.parse_risk_chain(self._complete(prompt, "risk chain"))
