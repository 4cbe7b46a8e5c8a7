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
Merging of accepted suggestions into an analysis tree.

All functions are pure and return the input structure object itself when
there is nothing to merge or the addressed entity does not exist.
"""

import logging
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from ..analysis_tree.editor import add_node, find_node, update_failures, update_functions
from ..analysis_tree.models import (
    FmeaCause,
    FmeaFailure,
    FmeaFunction,
    NodeKind,
    Structure,
    StructureNode,
)
from .parser import FunctionSuggestion, RiskSuggestion

logger = logging.getLogger(__name__)

DEFAULT_ROOT_NAME = "Root System"
DEFAULT_CAUSE_DESCRIPTION = "Suggested Cause"


def _clean_names(names: Optional[Iterable[str]]) -> list:
    return [name.strip() for name in (names or []) if isinstance(name, str) and name.strip()]


def _find_function(structure: Structure, node_id: str, function_id: str) -> Optional[FmeaFunction]:
    node = find_node(structure, node_id)
    if node is None:
        return None
    return next((f for f in node.functions if f.id == function_id), None)


def merge_structure_suggestions(
    structure: Structure, scope: str, names: Optional[Iterable[str]]
) -> Structure:
    """
    Add suggested elements as components.

    An empty tree gets a new system root named after the scope; otherwise
    the components are appended to the first top-level element.
    """
    names = _clean_names(names)
    structure = tuple(structure)
    if not names:
        return structure

    if not structure:
        root = StructureNode.create(name=(scope or "").strip() or DEFAULT_ROOT_NAME)
        children = tuple(
            StructureNode.create(name=name, parent_id=root.id, kind=NodeKind.COMPONENT)
            for name in names
        )
        logger.info(f"Created root '{root.name}' with {len(children)} suggested elements")
        return (replace(root, children=children),)

    root_id = structure[0].id
    for name in names:
        structure = add_node(
            structure, root_id, StructureNode.create(name=name, parent_id=root_id)
        )
    logger.info(f"Appended {len(names)} suggested elements to '{structure[0].name}'")
    return structure


def merge_function_suggestions(
    structure: Structure, node_id: str, suggestions: Optional[Sequence[FunctionSuggestion]]
) -> Structure:
    structure = tuple(structure)
    node = find_node(structure, node_id)
    if node is None or not suggestions:
        return structure

    new_functions = tuple(
        FmeaFunction(node_id=node.id, description=s.description, requirements=s.requirements)
        for s in suggestions
    )
    return update_functions(structure, node_id, node.functions + new_functions)


def merge_failure_suggestions(
    structure: Structure,
    node_id: str,
    function_id: str,
    modes: Optional[Iterable[str]],
) -> Structure:
    structure = tuple(structure)
    modes = _clean_names(modes)
    function = _find_function(structure, node_id, function_id)
    if function is None or not modes:
        return structure

    new_failures = tuple(
        FmeaFailure(function_id=function.id, failure_mode=mode) for mode in modes
    )
    return update_failures(structure, node_id, function_id, function.failures + new_failures)


def merge_risk_suggestion(
    structure: Structure,
    node_id: str,
    function_id: str,
    failure_id: str,
    suggestion: Optional[RiskSuggestion],
) -> Structure:
    """
    Append the suggested effect and a new unrated cause carrying the
    suggested controls to a failure.
    """
    structure = tuple(structure)
    function = _find_function(structure, node_id, function_id)
    if function is None or suggestion is None:
        return structure
    failure = next((f for f in function.failures if f.id == failure_id), None)
    if failure is None:
        return structure

    effects = failure.failure_effects
    if suggestion.effect:
        effects = effects + (suggestion.effect,)
    cause = FmeaCause(
        failure_id=failure.id,
        description=suggestion.cause or DEFAULT_CAUSE_DESCRIPTION,
        prevention_control=suggestion.prevention,
        detection_control=suggestion.detection,
    )
    updated = replace(
        failure,
        failure_effects=effects,
        failure_causes=failure.failure_causes + (cause,),
    )
    failures = tuple(updated if f.id == failure_id else f for f in function.failures)
    return update_failures(structure, node_id, function_id, failures)
