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
Populate LLM credentials and overrides from .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def load_env_file(env_path: Optional[Path]) -> List[str]:
    """
    Load KEY=value pairs from a .env file into os.environ.

    Variables already present in the environment win over the file. Blank
    lines, '#' comments and lines without '=' are ignored; an optional
    leading `export ` and surrounding quotes are stripped.

    Returns:
        Names of the variables that were set from the file
    """
    if not env_path:
        return []
    env_path = Path(env_path)
    if not env_path.is_file():
        return []

    loaded: List[str] = []
    try:
        with env_path.open("r", encoding="utf-8") as env_file:
            for raw_line in env_file:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                if line.startswith("export "):
                    line = line[len("export ") :]
                key, value = line.split("=", 1)
                key = key.strip()
                if key and key not in os.environ:
                    os.environ[key] = _unquote(value.strip())
                    loaded.append(key)
    except OSError as e:
        # Missing credentials surface later as a suggestion-service error
        logger.warning(f"Could not read env file {env_path}: {e}")
        return loaded

    if loaded:
        logger.debug(f"Loaded {len(loaded)} variables from {env_path}")
    return loaded
