"""Shared fixtures: a small analysis tree and a scripted completion client."""
import pytest

from fmeaflow.analysis_tree import risk
from fmeaflow.analysis_tree.models import (
    FmeaAction,
    FmeaCause,
    FmeaFailure,
    FmeaFunction,
    NodeKind,
    Project,
    StructureNode,
)


@pytest.fixture
def sample_cause():
    return FmeaCause(
        id="c1",
        failure_id="fl1",
        description="Pad wear",
        prevention_control="Material spec",
        detection_control="Bench test",
        severity=8,
        occurrence=6,
        detection=5,
        actions=(
            FmeaAction(
                id="a1",
                cause_id="c1",
                description="Harder compound",
                responsible="J. Doe",
                target_date="2024-06-01",
                new_severity=8,
                new_occurrence=3,
                new_detection=5,
            ),
            FmeaAction(
                id="a2",
                cause_id="c1",
                description="Wear sensor",
                responsible="R. Roe",
                new_severity=8,
                new_occurrence=3,
                new_detection=2,
            ),
        ),
    )


@pytest.fixture
def sample_structure(sample_cause):
    """
    Brake System (n1)
      functions: Stop vehicle (f1) -> Insufficient braking (fl1) -> Pad wear (c1)
      children:  Caliper (n2) with Clamp pad (f2) -> No clamping (fl2), no causes
                 Disc (n3)
    """
    failure = FmeaFailure(
        id="fl1",
        function_id="f1",
        failure_mode="Insufficient braking",
        failure_effects=("Longer stopping distance", "Accident"),
        failure_causes=(sample_cause,),
    )
    caliper = StructureNode(
        id="n2",
        parent_id="n1",
        name="Caliper",
        kind=NodeKind.COMPONENT,
        functions=(
            FmeaFunction(
                id="f2",
                node_id="n2",
                description="Clamp pad",
                failures=(FmeaFailure(id="fl2", function_id="f2", failure_mode="No clamping"),),
            ),
        ),
    )
    disc = StructureNode(id="n3", parent_id="n1", name="Disc", kind=NodeKind.COMPONENT)
    root = StructureNode(
        id="n1",
        name="Brake System",
        kind=NodeKind.SYSTEM,
        children=(caliper, disc),
        functions=(
            FmeaFunction(
                id="f1",
                node_id="n1",
                description="Stop vehicle",
                requirements="< 40 m from 100 km/h",
                failures=(failure,),
            ),
        ),
    )
    return (root,)


@pytest.fixture
def sample_project():
    return Project(
        id="p1",
        name="Brake System",
        number="FMEA-042",
        manager="A. Smith",
        team_members="A. Smith, J. Doe",
        date="2024-05-01",
        scope="Hydraulic brake system",
    )


@pytest.fixture
def restore_policy():
    """Put the default priority policy back after a test swaps it."""
    previous = risk.get_policy()
    yield
    risk.set_policy(previous)


class FakeLLMClient:
    """Returns scripted replies and records prompts; raises if told to."""

    def __init__(self, replies=None, error=None):
        self.replies = list(replies or [])
        self.error = error
        self.prompts = []

    def generate_completion(self, prompt, system_prompt=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else ""


@pytest.fixture
def fake_client_factory():
    return FakeLLMClient
