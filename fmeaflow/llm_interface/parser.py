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
Parsing of suggestion replies.

Every parse function is total: a reply that is not JSON, or has the wrong
shape, yields "no suggestions" (an empty list or None) and a warning.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass(frozen=True)
class FunctionSuggestion:
    """A suggested function with its requirement text"""

    description: str
    requirements: str = ""


@dataclass(frozen=True)
class RiskSuggestion:
    """A suggested effect, cause and control pair for one failure mode"""

    effect: str = ""
    cause: str = ""
    prevention: str = ""
    detection: str = ""


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value).strip()
    return ""


class SuggestionParser:
    """
    Parses suggestion replies into plain data.
    """

    @staticmethod
    def _load(response: Optional[str]) -> Any:
        if not response or not response.strip():
            logger.warning("Empty suggestion reply")
            return None
        text = response.strip()
        fenced = _FENCE_PATTERN.match(text)
        if fenced:
            text = fenced.group(1)
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.warning(f"Suggestion reply is not JSON. Preview: {text[:200]}...")
            return None

    @staticmethod
    def _string_list(payload: Any, key: str) -> List[str]:
        values = payload.get(key) if isinstance(payload, dict) else None
        if not isinstance(values, list):
            logger.warning(f"Suggestion reply has no '{key}' list")
            return []
        return [value.strip() for value in values if isinstance(value, str) and value.strip()]

    @staticmethod
    def parse_structure(response: Optional[str]) -> List[str]:
        """Names of suggested child elements, from {"items": [...]}"""
        return SuggestionParser._string_list(SuggestionParser._load(response), "items")

    @staticmethod
    def parse_failure_modes(response: Optional[str]) -> List[str]:
        """Suggested failure modes, from {"modes": [...]}"""
        return SuggestionParser._string_list(SuggestionParser._load(response), "modes")

    @staticmethod
    def parse_functions(response: Optional[str]) -> List[FunctionSuggestion]:
        """
        Suggested functions, from a bare array or {"functions": [...]}.

        Entries without a description are dropped.
        """
        payload = SuggestionParser._load(response)
        if isinstance(payload, dict):
            payload = payload.get("functions")
        if not isinstance(payload, list):
            logger.warning("Suggestion reply has no function list")
            return []

        suggestions = []
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            description = _as_text(entry.get("description"))
            if not description:
                continue
            suggestions.append(
                FunctionSuggestion(
                    description=description,
                    requirements=_as_text(entry.get("requirements")),
                )
            )
        return suggestions

    @staticmethod
    def parse_risk_chain(response: Optional[str]) -> Optional[RiskSuggestion]:
        """Suggested effect/cause/controls record, or None if nothing usable came back"""
        payload = SuggestionParser._load(response)
        if not isinstance(payload, dict):
            if payload is not None:
                logger.warning("Risk suggestion reply is not an object")
            return None

        suggestion = RiskSuggestion(
            effect=_as_text(payload.get("effect")),
            cause=_as_text(payload.get("cause")),
            prevention=_as_text(payload.get("prevention")),
            detection=_as_text(payload.get("detection")),
        )
        if not any((suggestion.effect, suggestion.cause, suggestion.prevention, suggestion.detection)):
            logger.warning("Risk suggestion reply has no usable fields")
            return None
        return suggestion
