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
Analysis Tree Module

Hierarchical FMEA data model (structure elements, functions, failures,
causes, actions), the Action Priority classifier, and the immutable tree
editing operations.
"""

from .models import (
    ActionStatus,
    FmeaAction,
    FmeaCause,
    FmeaFailure,
    FmeaFunction,
    FmeaType,
    NodeKind,
    Project,
    Structure,
    StructureNode,
)
from .risk import ActionPriority, classify, set_policy, simplified_ap_policy
from .session import AnalysisSession

__all__ = [
    "ActionPriority",
    "ActionStatus",
    "AnalysisSession",
    "FmeaAction",
    "FmeaCause",
    "FmeaFailure",
    "FmeaFunction",
    "FmeaType",
    "NodeKind",
    "Project",
    "Structure",
    "StructureNode",
    "classify",
    "set_policy",
    "simplified_ap_policy",
]
