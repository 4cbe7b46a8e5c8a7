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
Global configuration for fmeaflow
"""
import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

# Worksheet import configuration
IMPORT_CONFIG = {
    "delimiter": ",",
    "carry_forward_sentinel": '"',  # A lone quote means "same as the row above"
    "no_cause_sentinel": "None",  # Cause cell value that never creates a cause
    "max_header_lines": 2,
    "min_header_matches": 2,  # Cells that must match the vocabulary for a header line
    "element_kind": "system",
    "header_keywords": [
        # Group titles written by the exporter
        "structure analysis",
        "failure analysis",
        "risk analysis",
        "optimization",
        # Column titles
        "system element",
        "element",
        "process step",
        "function",
        "requirement",
        "requirements",
        "failure mode",
        "effect",
        "failure effect",
        "severity",
        "s",
        "cause",
        "failure cause",
        "occurrence",
        "o",
        "prevention",
        "prevention control",
        "detection",
        "detection control",
        "d",
        "ap",
    ],
}

# Worksheet export configuration
EXPORT_CONFIG = {
    "effects_separator": "; ",
    "no_actions_label": "None",
    "ditto_mark": '"',
    "json_indent": 2,
}


def get_llm_config() -> Dict[str, Any]:
    """
    LLM configuration for the suggestion service.

    Reads from environment variables at call time so that .env files loaded
    by the CLI are honoured. Supports both OPENAI_* and LLM_* prefixes.
    """
    return {
        "base_url": os.getenv("OPENAI_BASE_URL")
        or os.getenv("LLM_BASE_URL", "https://api.openai.com/v1"),
        "api_key": os.getenv("OPENAI_API_KEY") or os.getenv("LLM_API_KEY", ""),
        "model_name": os.getenv("OPENAI_MODEL") or os.getenv("LLM_MODEL", "gpt-4o"),
        "temperature": float(os.getenv("LLM_TEMPERATURE", "0.4")),
        "max_tokens": int(os.getenv("LLM_MAX_TOKENS", "2048")),
        "timeout": float(os.getenv("LLM_TIMEOUT", "60.0")),  # Seconds
        "max_retries": int(os.getenv("LLM_MAX_RETRIES", "3")),
    }


def load_config_overrides(
    config_path: Optional[Union[str, Path]],
) -> Dict[str, Dict[str, Any]]:
    """
    Merge a YAML override file into copies of the default configuration.

    The file may contain `import`, `export` and `llm` sections; unknown
    sections are ignored. A missing path returns the defaults.

    Returns:
        Dict with "import", "export" and "llm" configuration dicts
    """
    merged = {
        "import": copy.deepcopy(IMPORT_CONFIG),
        "export": copy.deepcopy(EXPORT_CONFIG),
        "llm": get_llm_config(),
    }
    if not config_path:
        return merged

    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config file not found: {path}, using defaults")
        return merged

    try:
        with open(path, "r", encoding="utf-8") as f:
            overrides = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.warning(f"Ignoring config file {path}: invalid YAML ({e})")
        return merged

    if not isinstance(overrides, dict):
        logger.warning(f"Ignoring config file {path}: expected a mapping at top level")
        return merged

    for section, values in overrides.items():
        if section not in merged:
            logger.warning(f"Ignoring unknown config section '{section}'")
            continue
        if isinstance(values, dict):
            merged[section].update(values)

    logger.info(f"Loaded config overrides from {path}")
    return merged
