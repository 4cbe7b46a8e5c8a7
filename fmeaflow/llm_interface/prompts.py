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
Prompt templates for the FMEA suggestion calls.
"""


SYSTEM_PROMPT = (
    "You are an expert quality engineer experienced in AIAG-VDA FMEA. "
    "Always answer with a single JSON object and nothing else."
)


class PromptTemplateManager:
    """
    Manages prompt templates for the suggestion steps.
    """

    def __init__(self):
        self.templates = {
            "structure": """I am performing a {fmea_type}. The scope is: "{scope}".

Generate a hierarchical structure for this analysis.
List the component names or process steps that would be children of the main subject.
Focus on physical components for a DFMEA or process steps for a PFMEA.

Respond with JSON in this exact shape:
{{"items": ["name 1", "name 2"]}}""",
            "functions": """I am doing a {fmea_type}.

Suggest 3-5 functions and requirements for the item: "{item_name}".
Each entry needs a 'description' (the function) and 'requirements' (specifications).

Respond with JSON in this exact shape:
{{"functions": [{{"description": "...", "requirements": "..."}}]}}""",
            "failures": """I am doing a {fmea_type}.

For the function: "{function_description}", suggest 3 potential failure modes.

Respond with JSON in this exact shape:
{{"modes": ["failure mode 1", "failure mode 2", "failure mode 3"]}}""",
            "risk_chain": """I am doing a {fmea_type}.

For the failure mode: "{failure_mode}", suggest:
1. One potential effect.
2. One potential cause.
3. A typical prevention control.
4. A typical detection control.

Respond with JSON in this exact shape:
{{"effect": "...", "cause": "...", "prevention": "...", "detection": "..."}}""",
        }

    def get_template(self, template_name: str) -> str:
        """Get a prompt template by name"""
        return self.templates.get(template_name, "")

    def format_structure_prompt(self, scope: str, fmea_type: str) -> str:
        return self.get_template("structure").format(scope=scope, fmea_type=fmea_type)

    def format_functions_prompt(self, item_name: str, fmea_type: str) -> str:
        return self.get_template("functions").format(
            item_name=item_name, fmea_type=fmea_type
        )

    def format_failures_prompt(self, function_description: str, fmea_type: str) -> str:
        return self.get_template("failures").format(
            function_description=function_description, fmea_type=fmea_type
        )

    def format_risk_chain_prompt(self, failure_mode: str, fmea_type: str) -> str:
        """Format the prompt asking for one effect, cause and control pair"""
        return self.get_template("risk_chain").format(
            failure_mode=failure_mode, fmea_type=fmea_type
        )
