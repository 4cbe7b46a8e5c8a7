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
Thin client for the external completion service behind the suggestion calls.
"""

import logging
from typing import Any, Dict, Optional

import openai

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Client for communicating with LLM services using OpenAI API.

    Replies are requested as a JSON object; timeouts and retries are left to
    the SDK using the configured values.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model_name: str,
        temperature: float = 0.4,
        max_tokens: int = 2048,
        timeout: float = 60.0,
        max_retries: int = 3,
        json_mode: bool = True,
    ):
        self.client = openai.OpenAI(
            base_url=base_url, api_key=api_key, timeout=timeout, max_retries=max_retries
        )
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.json_mode = json_mode

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> Optional["LLMClient"]:
        """
        Build a client from an LLM config dict (see `get_llm_config`).

        Returns None when no API key is configured.
        """
        if config is None:
            from ..config.settings import get_llm_config

            config = get_llm_config()

        if not config.get("api_key"):
            logger.warning("No LLM API key configured; suggestions are unavailable")
            return None

        return cls(
            base_url=config["base_url"],
            api_key=config["api_key"],
            model_name=config["model_name"],
            temperature=config.get("temperature", 0.4),
            max_tokens=config.get("max_tokens", 2048),
            timeout=config.get("timeout", 60.0),
            max_retries=config.get("max_retries", 3),
        )

    def generate_completion(
        self, prompt: str, system_prompt: Optional[str] = None
    ) -> str:
        """
        Generate a completion from the LLM.
        """
        messages = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        messages.append({"role": "user", "content": prompt})

        request: Dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(**request)
        except openai.OpenAIError as e:
            logger.error(f"Error generating completion: {e}")
            raise

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.error(f"LLM returned empty content for model {self.model_name}")
            return ""

        logger.debug(f"LLM response length: {len(content)} characters")
        return content
