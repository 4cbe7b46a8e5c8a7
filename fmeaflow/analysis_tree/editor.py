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
Analysis Tree Editor

Recursive locate/insert/update/delete operations over an immutable analysis
tree (a tuple of top-level StructureNodes).

Every edit returns a new snapshot in which only the ancestors of the touched
entity are rebuilt. Untouched subtrees are reused as-is, so `old is new`
identity checks tell a caller which parts changed. An edit addressed to an
id (or id chain) that is not in the tree returns the input snapshot itself.

Traversal is depth-first, parent before children, in sibling order.
"""

import logging
from dataclasses import replace
from typing import Any, Callable, Iterator, List, Optional, Sequence, Set, Tuple, TypeVar, Union

from .models import (
    FmeaAction,
    FmeaCause,
    FmeaFailure,
    FmeaFunction,
    Project,
    Structure,
    StructureNode,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fields `update_node_field` may touch; child collections have their own primitives
# and `parent_id` follows the node's position in the tree
NODE_SCALAR_FIELDS = ("name", "kind")


# =========================================================
# Locators
# =========================================================


def iter_nodes(structure: Sequence[StructureNode]) -> Iterator[StructureNode]:
    """Yield every node depth-first, parent before children"""
    for node in structure:
        yield node
        yield from iter_nodes(node.children)


def find_node(structure: Sequence[StructureNode], node_id: str) -> Optional[StructureNode]:
    for node in iter_nodes(structure):
        if node.id == node_id:
            return node
    return None


def find_function(structure: Sequence[StructureNode], function_id: str) -> Optional[FmeaFunction]:
    for node in iter_nodes(structure):
        for function in node.functions:
            if function.id == function_id:
                return function
    return None


def find_failure(structure: Sequence[StructureNode], failure_id: str) -> Optional[FmeaFailure]:
    for node in iter_nodes(structure):
        for function in node.functions:
            for failure in function.failures:
                if failure.id == failure_id:
                    return failure
    return None


def find_cause(structure: Sequence[StructureNode], cause_id: str) -> Optional[FmeaCause]:
    for node in iter_nodes(structure):
        for function in node.functions:
            for failure in function.failures:
                for cause in failure.failure_causes:
                    if cause.id == cause_id:
                        return cause
    return None


def collect_ids(
    target: Union[StructureNode, FmeaFunction, Sequence[StructureNode]]
) -> Set[str]:
    """Collect the ids of an entity and everything it owns"""
    ids: Set[str] = set()

    def visit_cause(cause: FmeaCause):
        ids.add(cause.id)
        ids.update(action.id for action in cause.actions)

    def visit_function(function: FmeaFunction):
        ids.add(function.id)
        for failure in function.failures:
            ids.add(failure.id)
            for cause in failure.failure_causes:
                visit_cause(cause)

    def visit_node(node: StructureNode):
        ids.add(node.id)
        for function in node.functions:
            visit_function(function)
        for child in node.children:
            visit_node(child)

    if isinstance(target, StructureNode):
        visit_node(target)
    elif isinstance(target, FmeaFunction):
        visit_function(target)
    else:
        for node in target:
            visit_node(node)
    return ids


# =========================================================
# Internal path-copying helpers
# =========================================================


def _replace_by_id(
    items: Tuple[T, ...], item_id: str, transform: Callable[[T], T]
) -> Tuple[T, ...]:
    """Apply transform to the item with item_id; return items itself if nothing changed"""
    for index, item in enumerate(items):
        if item.id == item_id:
            new_item = transform(item)
            if new_item is item:
                return items
            return items[:index] + (new_item,) + items[index + 1 :]
    return items


def _transform_node(
    nodes: Tuple[StructureNode, ...],
    node_id: str,
    transform: Callable[[StructureNode], StructureNode],
) -> Tuple[StructureNode, ...]:
    """Depth-first search for node_id, rebuilding only its ancestors"""
    for index, node in enumerate(nodes):
        if node.id == node_id:
            new_node = transform(node)
        else:
            new_children = _transform_node(node.children, node_id, transform)
            if new_children is node.children:
                continue
            new_node = replace(node, children=new_children)

        if new_node is node:
            return nodes
        return nodes[:index] + (new_node,) + nodes[index + 1 :]
    return nodes


def _adopt(items: Sequence[T], parent_field: str, parent_id: str) -> Tuple[T, ...]:
    """Point each child's back-reference at its new parent"""
    return tuple(
        item if getattr(item, parent_field) == parent_id else replace(item, **{parent_field: parent_id})
        for item in items
    )


def _transform_function(
    structure: Structure,
    node_id: str,
    function_id: str,
    transform: Callable[[FmeaFunction], FmeaFunction],
) -> Structure:
    def on_node(node: StructureNode) -> StructureNode:
        functions = _replace_by_id(node.functions, function_id, transform)
        return node if functions is node.functions else replace(node, functions=functions)

    return _transform_node(tuple(structure), node_id, on_node)


def _transform_failure(
    structure: Structure,
    node_id: str,
    function_id: str,
    failure_id: str,
    transform: Callable[[FmeaFailure], FmeaFailure],
) -> Structure:
    def on_function(function: FmeaFunction) -> FmeaFunction:
        failures = _replace_by_id(function.failures, failure_id, transform)
        return function if failures is function.failures else replace(function, failures=failures)

    return _transform_function(structure, node_id, function_id, on_function)


def _transform_cause(
    structure: Structure,
    node_id: str,
    function_id: str,
    failure_id: str,
    cause_id: str,
    transform: Callable[[FmeaCause], FmeaCause],
) -> Structure:
    def on_failure(failure: FmeaFailure) -> FmeaFailure:
        causes = _replace_by_id(failure.failure_causes, cause_id, transform)
        return failure if causes is failure.failure_causes else replace(failure, failure_causes=causes)

    return _transform_failure(structure, node_id, function_id, failure_id, on_failure)


# =========================================================
# Node operations
# =========================================================


def add_node(structure: Structure, parent_id: Optional[str], node: StructureNode) -> Structure:
    """
    Append node to the top level (parent_id None) or to the children of the
    node with parent_id. Unknown parent ids leave the tree unchanged.

    Raises:
        ValueError: if an id inside node is already used in the tree
    """
    structure = tuple(structure)
    clashes = collect_ids(node) & collect_ids(structure)
    if clashes:
        raise ValueError(f"add_node: ids already in the tree: {', '.join(sorted(clashes))}")

    if parent_id is None:
        if node.parent_id is not None:
            node = replace(node, parent_id=None)
        return structure + (node,)

    if node.parent_id != parent_id:
        node = replace(node, parent_id=parent_id)

    def append_child(parent: StructureNode) -> StructureNode:
        return replace(parent, children=parent.children + (node,))

    updated = _transform_node(structure, parent_id, append_child)
    if updated is structure:
        logger.debug(f"add_node: parent {parent_id} not found, tree unchanged")
    return updated


def delete_node(structure: Structure, node_id: str) -> Structure:
    """Remove a node with its whole subtree and everything owned beneath it"""

    def prune(nodes: Tuple[StructureNode, ...]) -> Tuple[StructureNode, ...]:
        for index, node in enumerate(nodes):
            if node.id == node_id:
                return nodes[:index] + nodes[index + 1 :]
            children = prune(node.children)
            if children is not node.children:
                return nodes[:index] + (replace(node, children=children),) + nodes[index + 1 :]
        return nodes

    return prune(tuple(structure))


def update_node_field(structure: Structure, node_id: str, field_name: str, value: Any) -> Structure:
    """Replace a scalar field of a node; children and functions stay untouched"""
    if field_name not in NODE_SCALAR_FIELDS:
        raise ValueError(
            f"update_node_field only supports {', '.join(NODE_SCALAR_FIELDS)}, got '{field_name}'"
        )

    def set_field(node: StructureNode) -> StructureNode:
        return replace(node, **{field_name: value})

    return _transform_node(tuple(structure), node_id, set_field)


# =========================================================
# Replace-whole-sequence primitives
# =========================================================


def update_functions(
    structure: Structure, node_id: str, functions: Sequence[FmeaFunction]
) -> Structure:
    """Replace the whole function list of a node"""

    def set_functions(node: StructureNode) -> StructureNode:
        return replace(node, functions=_adopt(functions, "node_id", node.id))

    return _transform_node(tuple(structure), node_id, set_functions)


def update_failures(
    structure: Structure,
    node_id: str,
    function_id: str,
    failures: Sequence[FmeaFailure],
) -> Structure:
    """Replace the whole failure list of a function addressed by (node, function)"""

    def set_failures(function: FmeaFunction) -> FmeaFunction:
        return replace(function, failures=_adopt(failures, "function_id", function.id))

    return _transform_function(structure, node_id, function_id, set_failures)


def update_causes(
    structure: Structure,
    node_id: str,
    function_id: str,
    failure_id: str,
    causes: Sequence[FmeaCause],
) -> Structure:
    """
    Replace the whole cause list of a failure addressed by (node, function, failure).
    Action priorities of the new causes are derived from their scores on construction.
    """

    def set_causes(failure: FmeaFailure) -> FmeaFailure:
        return replace(failure, failure_causes=_adopt(causes, "failure_id", failure.id))

    return _transform_failure(structure, node_id, function_id, failure_id, set_causes)


def update_actions(
    structure: Structure,
    node_id: str,
    function_id: str,
    failure_id: str,
    cause_id: str,
    actions: Sequence[FmeaAction],
) -> Structure:
    """Replace the whole action list of a cause addressed by its full id chain"""

    def set_actions(cause: FmeaCause) -> FmeaCause:
        return replace(cause, actions=_adopt(actions, "cause_id", cause.id))

    return _transform_cause(structure, node_id, function_id, failure_id, cause_id, set_actions)


# =========================================================
# Single-entity conveniences built on the primitives
# =========================================================


def update_cause(
    structure: Structure,
    node_id: str,
    function_id: str,
    failure_id: str,
    cause_id: str,
    **changes: Any,
) -> Structure:
    """
    Replace fields of one cause. Score changes recompute its action priority
    in the same step.
    """

    def apply(cause: FmeaCause) -> FmeaCause:
        return replace(cause, **changes)

    return _transform_cause(structure, node_id, function_id, failure_id, cause_id, apply)


def add_action(
    structure: Structure,
    node_id: str,
    function_id: str,
    failure_id: str,
    cause_id: str,
    **fields: Any,
) -> Structure:
    """Append a new action to a cause, seeding its re-rating from the cause's scores"""

    def append(cause: FmeaCause) -> FmeaCause:
        return replace(cause, actions=cause.actions + (FmeaAction.for_cause(cause, **fields),))

    return _transform_cause(structure, node_id, function_id, failure_id, cause_id, append)


def update_action(
    structure: Structure,
    node_id: str,
    function_id: str,
    failure_id: str,
    cause_id: str,
    action_id: str,
    **changes: Any,
) -> Structure:
    """Replace fields of one action; re-rating changes recompute its new priority"""

    def apply(cause: FmeaCause) -> FmeaCause:
        actions = _replace_by_id(cause.actions, action_id, lambda a: replace(a, **changes))
        return cause if actions is cause.actions else replace(cause, actions=actions)

    return _transform_cause(structure, node_id, function_id, failure_id, cause_id, apply)


def remove_by_id(items: Sequence[T], item_id: str) -> List[T]:
    """Build the list a caller passes to a replace primitive when deleting one entry"""
    return [item for item in items if item.id != item_id]


# =========================================================
# Project
# =========================================================


def update_project_field(project: Project, field_name: str, value: Any) -> Project:
    """Return a project with one field replaced"""
    if not hasattr(project, field_name):
        raise AttributeError(f"Project has no field '{field_name}'")
    return replace(project, **{field_name: value})
