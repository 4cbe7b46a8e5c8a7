"""Tests for the suggestion boundary: parsing, merging, service and agents."""
import json

import openai
import pytest

from fmeaflow.analysis_tree import editor
from fmeaflow.analysis_tree.models import FmeaType, NodeKind
from fmeaflow.analysis_tree.risk import ActionPriority
from fmeaflow.llm_interface import (
    AgentContext,
    AgentOrchestrator,
    FailureSuggestionAgent,
    FunctionSuggestion,
    FunctionSuggestionAgent,
    LLMClient,
    PromptTemplateManager,
    RiskChainSuggestionAgent,
    RiskSuggestion,
    StructureSuggestionAgent,
    SuggestionParser,
    SuggestionService,
    SuggestionServiceError,
    merge_failure_suggestions,
    merge_function_suggestions,
    merge_risk_suggestion,
    merge_structure_suggestions,
)
from fmeaflow.llm_interface.agents import SuggestionAgent


class TestParser:
    """Reply parsing."""

    def test_structure_items(self):
        """Names come from the items key."""
        assert SuggestionParser.parse_structure('{"items": ["Pump", " ", "Valve"]}') == ["Pump", "Valve"]

    def test_code_fence_stripped(self):
        """A fenced JSON reply is accepted."""
        reply = '```json\n{"modes": ["Leak"]}\n```'
        assert SuggestionParser.parse_failure_modes(reply) == ["Leak"]

    def test_functions_bare_or_wrapped(self):
        """Function lists may be bare arrays or under 'functions'."""
        bare = '[{"description": "Pump fluid", "requirements": "5 l/min"}]'
        wrapped = json.dumps({"functions": json.loads(bare)})
        expected = [FunctionSuggestion("Pump fluid", "5 l/min")]
        assert SuggestionParser.parse_functions(bare) == expected
        assert SuggestionParser.parse_functions(wrapped) == expected

    def test_functions_without_description_dropped(self):
        """Entries lacking a description are ignored."""
        reply = '{"functions": [{"requirements": "x"}, "junk", {"description": "Seal"}]}'
        assert SuggestionParser.parse_functions(reply) == [FunctionSuggestion("Seal", "")]

    def test_risk_chain(self):
        """A risk record is read field by field."""
        reply = '{"effect": "Brake fade", "cause": "Overheating", "prevention": "Vent design"}'
        assert SuggestionParser.parse_risk_chain(reply) == RiskSuggestion(
            effect="Brake fade", cause="Overheating", prevention="Vent design", detection=""
        )

    @pytest.mark.parametrize("reply", ["", None, "not json", "[1, 2]", '{"items": "Pump"}', "{}"])
    def test_malformed_is_no_suggestion(self, reply):
        """Unusable replies yield nothing."""
        assert SuggestionParser.parse_structure(reply) == []
        assert SuggestionParser.parse_functions(reply) == []
        assert SuggestionParser.parse_failure_modes(reply) == []
        assert SuggestionParser.parse_risk_chain(reply) is None


class TestMerge:
    """Merging suggestions into the tree."""

    def test_structure_into_empty_tree(self):
        """An empty tree gets a root named after the scope."""
        merged = merge_structure_suggestions((), "Brake system", ["Caliper", "Disc"])
        assert len(merged) == 1
        root = merged[0]
        assert root.name == "Brake system"
        assert root.kind == NodeKind.SYSTEM
        assert [c.name for c in root.children] == ["Caliper", "Disc"]
        assert all(c.parent_id == root.id for c in root.children)
        assert all(c.kind == NodeKind.COMPONENT for c in root.children)

    def test_structure_default_root_name(self):
        """A blank scope names the root "Root System"."""
        assert merge_structure_suggestions((), "  ", ["Pump"])[0].name == "Root System"

    def test_structure_appended_to_first_root(self, sample_structure):
        """Existing trees get the components under the first root."""
        merged = merge_structure_suggestions(sample_structure, "ignored", ["Hose"])
        root = merged[0]
        assert [c.name for c in root.children] == ["Caliper", "Disc", "Hose"]
        assert root.children[-1].parent_id == "n1"

    @pytest.mark.parametrize("names", [None, [], ["", "   "]])
    def test_nothing_to_merge(self, sample_structure, names):
        """Empty suggestions return the same snapshot."""
        assert merge_structure_suggestions(sample_structure, "x", names) is sample_structure

    def test_functions(self, sample_structure):
        """Suggested functions are appended to the node."""
        merged = merge_function_suggestions(
            sample_structure, "n3", [FunctionSuggestion("Dissipate heat", "< 400 C")]
        )
        functions = editor.find_node(merged, "n3").functions
        assert [(f.description, f.requirements, f.node_id) for f in functions] == [
            ("Dissipate heat", "< 400 C", "n3")
        ]

    def test_functions_unknown_node(self, sample_structure):
        """A missing node leaves the tree unchanged."""
        merged = merge_function_suggestions(sample_structure, "ghost", [FunctionSuggestion("x")])
        assert merged is sample_structure

    def test_failures(self, sample_structure):
        """Suggested modes become failures of the function."""
        merged = merge_failure_suggestions(sample_structure, "n2", "f2", ["Sticking", "Leak"])
        modes = [f.failure_mode for f in editor.find_function(merged, "f2").failures]
        assert modes == ["No clamping", "Sticking", "Leak"]

    def test_risk_chain(self, sample_structure):
        """The effect is appended and an unrated cause added."""
        suggestion = RiskSuggestion(effect="Noise", cause="Corrosion", prevention="Coating", detection="Visual")
        merged = merge_risk_suggestion(sample_structure, "n2", "f2", "fl2", suggestion)
        failure = editor.find_failure(merged, "fl2")
        assert failure.failure_effects == ("Noise",)
        cause = failure.failure_causes[0]
        assert (cause.description, cause.prevention_control, cause.detection_control) == (
            "Corrosion",
            "Coating",
            "Visual",
        )
        assert cause.failure_id == "fl2"
        assert cause.action_priority == ActionPriority.LOW

    def test_risk_chain_default_cause(self, sample_structure):
        """A suggestion without a cause uses a placeholder description."""
        merged = merge_risk_suggestion(sample_structure, "n2", "f2", "fl2", RiskSuggestion(effect="Noise"))
        assert editor.find_failure(merged, "fl2").failure_causes[0].description == "Suggested Cause"

    def test_risk_chain_none(self, sample_structure):
        """No suggestion means no change."""
        assert merge_risk_suggestion(sample_structure, "n2", "f2", "fl2", None) is sample_structure


class TestService:
    """SuggestionService with a fake client."""

    def test_prompts_mention_context(self, fake_client_factory):
        """The prompt carries the scope and FMEA type."""
        client = fake_client_factory(['{"items": ["Pump"]}'])
        service = SuggestionService(llm_client=client)
        assert service.suggest_structure("Cooling loop", "PFMEA") == ["Pump"]
        assert "Cooling loop" in client.prompts[0]
        assert "PFMEA" in client.prompts[0]

    def test_no_client_raises(self):
        """Without a client the service is unavailable."""
        service = SuggestionService(llm_client=None)
        assert not service.available
        with pytest.raises(SuggestionServiceError):
            service.suggest_failures("Pump fluid", "DFMEA")

    def test_client_error_wrapped(self, fake_client_factory):
        """SDK errors surface as SuggestionServiceError."""
        service = SuggestionService(llm_client=fake_client_factory(error=openai.OpenAIError("down")))
        with pytest.raises(SuggestionServiceError, match="down"):
            service.suggest_risk_chain("Leak", "DFMEA")

    def test_from_config_without_key(self):
        """A config without an API key yields an unavailable service."""
        service = SuggestionService.from_config({"api_key": "", "base_url": "", "model_name": "m"})
        assert not service.available

    def test_templates_format(self):
        """Every template formats with its own parameters."""
        prompts = PromptTemplateManager()
        assert "Caliper" in prompts.format_functions_prompt("Caliper", "DFMEA")
        assert "Clamp pad" in prompts.format_failures_prompt("Clamp pad", "DFMEA")
        assert '"effect"' in prompts.format_risk_chain_prompt("Leak", "DFMEA")


class TestLLMClient:
    """Client construction."""

    def test_from_config_needs_key(self):
        """No API key, no client."""
        assert LLMClient.from_config({"api_key": ""}) is None

    def test_from_config(self):
        """Config values are carried over."""
        client = LLMClient.from_config(
            {
                "api_key": "sk-test",
                "base_url": "http://localhost:9999/v1",
                "model_name": "test-model",
                "temperature": 0.1,
                "max_tokens": 100,
                "timeout": 5.0,
                "max_retries": 0,
            }
        )
        assert client.model_name == "test-model"
        assert client.temperature == 0.1
        assert client.max_tokens == 100


class TestAgents:
    """Agents leave the context untouched and propose a new structure."""

    def test_structure_agent(self, fake_client_factory):
        """Suggestions build a tree from the scope."""
        service = SuggestionService(llm_client=fake_client_factory(['{"items": ["Caliper"]}']))
        context = AgentContext(scope="Brakes", fmea_type="DFMEA")
        output = StructureSuggestionAgent(service).run(context)
        assert output.success
        assert output.structure[0].name == "Brakes"
        assert output.suggestions == ["Caliper"]
        assert context.structure == ()

    def test_context_for_project(self, sample_project, sample_structure):
        """A project seeds the scope and FMEA type."""
        context = AgentContext.for_project(sample_project, sample_structure, node_id="n2")
        assert context.scope == "Hydraulic brake system"
        assert context.fmea_type is FmeaType.DFMEA
        assert context.node_id == "n2"

    def test_structure_agent_needs_scope(self, fake_client_factory):
        """An empty scope fails before calling the service."""
        client = fake_client_factory()
        output = StructureSuggestionAgent(SuggestionService(llm_client=client)).run(AgentContext())
        assert not output.success
        assert client.prompts == []

    def test_service_failure(self, sample_structure, fake_client_factory):
        """A failing service is reported, not raised."""
        service = SuggestionService(llm_client=fake_client_factory(error=openai.OpenAIError("timeout")))
        context = AgentContext(structure=sample_structure, node_id="n3")
        output = FunctionSuggestionAgent(service).run(context)
        assert not output.success
        assert "timeout" in output.errors[0]
        assert output.structure is None

    def test_unusable_reply(self, sample_structure, fake_client_factory):
        """A malformed reply is treated as no suggestions."""
        service = SuggestionService(llm_client=fake_client_factory(["garbage"]))
        context = AgentContext(structure=sample_structure, node_id="n3")
        output = FunctionSuggestionAgent(service).run(context)
        assert output.success
        assert output.structure == sample_structure

    def test_failure_agent(self, sample_structure, fake_client_factory):
        """Failure modes are added to the addressed function."""
        client = fake_client_factory(['{"modes": ["Sticking"]}'])
        context = AgentContext(structure=sample_structure, node_id="n2", function_id="f2")
        output = FailureSuggestionAgent(SuggestionService(llm_client=client)).run(context)
        assert "Clamp pad" in client.prompts[0]
        modes = [f.failure_mode for f in editor.find_function(output.structure, "f2").failures]
        assert modes == ["No clamping", "Sticking"]

    def test_failure_agent_wrong_node(self, sample_structure, fake_client_factory):
        """A function addressed through the wrong element is not found."""
        client = fake_client_factory()
        context = AgentContext(structure=sample_structure, node_id="n1", function_id="f2")
        output = FailureSuggestionAgent(SuggestionService(llm_client=client)).run(context)
        assert not output.success
        assert client.prompts == []

    @pytest.mark.parametrize(
        "node_id, function_id, failure_id",
        [
            ("n2", "f2", "zz"),
            ("bogus", "f2", "fl2"),
            ("n1", "f2", "fl2"),
            ("n2", "f1", "fl2"),
        ],
    )
    def test_risk_agent_unknown_target(
        self, sample_structure, fake_client_factory, node_id, function_id, failure_id
    ):
        """Any id of the chain that does not resolve fails without a service call."""
        client = fake_client_factory()
        context = AgentContext(
            structure=sample_structure,
            node_id=node_id,
            function_id=function_id,
            failure_id=failure_id,
        )
        output = RiskChainSuggestionAgent(SuggestionService(llm_client=client)).run(context)
        assert not output.success
        assert client.prompts == []

    def test_suggestion_agent_is_abstract(self):
        """The shared run loop cannot be used without its step hooks."""
        with pytest.raises(TypeError):
            SuggestionAgent("bare", SuggestionService(llm_client=None))

    def test_orchestrator_chains_structures(self, sample_structure, fake_client_factory):
        """Each agent sees the structure left by the previous one."""
        client = fake_client_factory(
            [
                '{"modes": ["Sticking"]}',
                '{"effect": "Drag", "cause": "Corrosion", "prevention": "", "detection": ""}',
            ]
        )
        service = SuggestionService(llm_client=client)
        context = AgentContext(
            structure=sample_structure, node_id="n2", function_id="f2", failure_id="fl2"
        )
        result = AgentOrchestrator(
            [FailureSuggestionAgent(service), RiskChainSuggestionAgent(service)]
        ).execute(context)
        assert result.errors == []
        failure = editor.find_failure(result.structure, "fl2")
        assert failure.failure_effects == ("Drag",)
        assert result.suggestions["failure_suggestion"] == ["Sticking"]
        assert set(result.timings) == {"failure_suggestion", "risk_chain_suggestion"}

    def test_orchestrator_stops_on_failure(self, sample_structure, fake_client_factory):
        """A failing agent ends the run with its error recorded."""
        service = SuggestionService(llm_client=None)
        context = AgentContext(structure=sample_structure, node_id="n3")
        result = AgentOrchestrator([FunctionSuggestionAgent(service)]).execute(context)
        assert result.errors and result.errors[0].startswith("function_suggestion:")
        assert result.structure == sample_structure
