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
Action Priority classification

Maps a Severity/Occurrence/Detection triple to an Action Priority tier.

The default policy is a simplified approximation of the AIAG-VDA Action
Priority table, not the official matrix. Callers always go through
`classify`, so a stricter table can be installed with `set_policy` without
touching any call site.
"""

import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

SCORE_MIN = 0
SCORE_MAX = 10


class ActionPriority(str, Enum):
    """Action Priority tiers (serialised as the single-letter AIAG-VDA codes)"""

    LOW = "L"
    MEDIUM = "M"
    HIGH = "H"


PriorityPolicy = Callable[[int, int, int], ActionPriority]


def simplified_ap_policy(severity: int, occurrence: int, detection: int) -> ActionPriority:
    """
    Simplified AIAG-VDA Action Priority logic.

    A score of 0 means "not rated yet" and simply weighs least.
    """
    if severity >= 9:
        if occurrence >= 6:
            return ActionPriority.HIGH
        if occurrence >= 4 and detection >= 7:
            return ActionPriority.HIGH
        return ActionPriority.MEDIUM
    if severity >= 7:
        if occurrence >= 8:
            return ActionPriority.HIGH
        if occurrence >= 6 and detection >= 5:
            return ActionPriority.HIGH
        if occurrence >= 4 and detection >= 7:
            return ActionPriority.HIGH
        return ActionPriority.MEDIUM
    if severity >= 4:
        if occurrence >= 8 and detection >= 7:
            return ActionPriority.HIGH
        if occurrence >= 6 and detection >= 9:
            return ActionPriority.HIGH
        return ActionPriority.MEDIUM
    return ActionPriority.LOW


_active_policy: PriorityPolicy = simplified_ap_policy


def set_policy(policy: PriorityPolicy) -> PriorityPolicy:
    """
    Install a different classification policy.

    Returns the previously active policy so callers (and tests) can restore it.
    Entities created before the switch keep the priority they were built with
    until they are next replaced.
    """
    global _active_policy
    previous = _active_policy
    _active_policy = policy
    logger.info(f"Action priority policy set to {getattr(policy, '__name__', policy)}")
    return previous


def get_policy() -> PriorityPolicy:
    """Get the currently active classification policy"""
    return _active_policy


def validate_score(value: int, name: str = "score") -> int:
    """Raise ValueError unless value is an integer rating in [0, 10]"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < SCORE_MIN or value > SCORE_MAX:
        raise ValueError(f"{name} must be between {SCORE_MIN} and {SCORE_MAX}, got {value}")
    return value


def classify(severity: int, occurrence: int, detection: int) -> ActionPriority:
    """Classify an S/O/D triple with the active policy"""
    return _active_policy(severity, occurrence, detection)
