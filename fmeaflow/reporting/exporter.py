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
Worksheet and interchange export.

The CSV worksheet is a one-way report; the interchange document is the
lossless save format and is read back with `load_interchange`.
"""

import csv
import io
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from ..analysis_tree.models import (
    Project,
    Structure,
    StructureNode,
    structure_from_list,
    structure_to_list,
)
from ..config.settings import EXPORT_CONFIG
from ..schema.interchange_schema import InterchangeDocumentSchema
from .views import worksheet_rows

logger = logging.getLogger(__name__)

# (title, number of columns spanned)
COLUMN_GROUPS = [
    ("Structure Analysis", 3),
    ("Failure Analysis", 3),
    ("Risk Analysis", 6),
    ("Optimization", 8),
]

COLUMN_TITLES = [
    "System Element",
    "Function",
    "Requirement",
    "Failure Mode",
    "Effect",
    "S",
    "Cause",
    "O",
    "Prevention",
    "Detection",
    "D",
    "AP",
    "Action",
    "Resp.",
    "Date",
    "Action Taken",
    "S",
    "O",
    "D",
    "AP",
]


@dataclass(frozen=True)
class InterchangeDocument:
    """A loaded full-project document"""

    project: Project
    structure: Structure


class WorksheetExporter:
    """
    Exports an analysis to the worksheet CSV and the interchange JSON.
    """

    @staticmethod
    def _group_header() -> List[str]:
        row: List[str] = []
        for title, span in COLUMN_GROUPS:
            row.append(title)
            row.extend([""] * (span - 1))
        return row

    @staticmethod
    def to_csv_text(
        structure: Sequence[StructureNode], config: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Render the worksheet as CSV text.

        Every cell is quoted. Later action rows of the same cause repeat only
        the element name; the other base columns carry the ditto mark.
        """
        config = {**EXPORT_CONFIG, **(config or {})}
        ditto = config["ditto_mark"]

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(WorksheetExporter._group_header())
        writer.writerow(COLUMN_TITLES)

        for row in worksheet_rows(structure):
            base = row.risk.base_cells(config["effects_separator"])
            if row.action_index > 0:
                base = [base[0]] + [ditto] * (len(base) - 1)
            writer.writerow(base + row.action_cells(config["no_actions_label"]))

        return buffer.getvalue()

    @staticmethod
    def to_interchange(project: Project, structure: Sequence[StructureNode]) -> Dict[str, Any]:
        return {
            "project": project.to_dict(),
            "structure": structure_to_list(tuple(structure)),
        }

    @staticmethod
    def dumps_interchange(
        project: Project, structure: Sequence[StructureNode], indent: Optional[int] = None
    ) -> str:
        if indent is None:
            indent = EXPORT_CONFIG["json_indent"]
        return json.dumps(
            WorksheetExporter.to_interchange(project, structure),
            ensure_ascii=False,
            indent=indent,
        )

    @staticmethod
    def export_filename(project: Project, suffix: str) -> str:
        """
        Build a download filename from the project name.

        Example: project "My Project" with suffix "_FMEA.csv" gives
        "My_Project_FMEA.csv".
        """
        return re.sub(r"\s+", "_", project.name) + suffix

    @staticmethod
    def export_to_csv(
        output_file: Union[str, Path],
        structure: Sequence[StructureNode],
        config: Optional[Dict[str, Any]] = None,
    ) -> Path:
        """
        Export the worksheet to a CSV file.

        Args:
            output_file: Path to output CSV file
            structure: Top-level structure elements
            config: Overrides for EXPORT_CONFIG (optional)
        """
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, "w", encoding="utf-8", newline="") as f:
            f.write(WorksheetExporter.to_csv_text(structure, config))
        logger.info(f"Exported worksheet to {output_file}")
        return output_file

    @staticmethod
    def export_to_json(
        output_file: Union[str, Path],
        project: Project,
        structure: Sequence[StructureNode],
    ) -> Path:
        """
        Export the full project to an interchange JSON file.

        Args:
            output_file: Path to output JSON file
            project: Project metadata
            structure: Top-level structure elements
        """
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(
                WorksheetExporter.to_interchange(project, structure),
                f,
                ensure_ascii=False,
                indent=EXPORT_CONFIG["json_indent"],
            )
        logger.info(f"Exported project to {output_file}")
        return output_file


def load_interchange(data: Union[str, bytes, Mapping[str, Any]]) -> Optional[InterchangeDocument]:
    """
    Read an interchange document.

    Args:
        data: JSON text (str or UTF-8 bytes) or an already-decoded mapping

    Returns:
        The loaded document, or None if the input is malformed
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Invalid interchange document: not valid JSON ({e})")
            return None

    if not isinstance(data, Mapping) or "project" not in data or "structure" not in data:
        logger.warning("Invalid interchange document: missing 'project' or 'structure'")
        return None

    try:
        validated = InterchangeDocumentSchema.model_validate(dict(data))
    except ValidationError as e:
        logger.warning(f"Invalid interchange document: {e.error_count()} validation errors")
        logger.debug(str(e))
        return None

    normalized = validated.model_dump(by_alias=True, exclude_unset=True)
    return InterchangeDocument(
        project=Project.from_dict(normalized["project"]),
        structure=structure_from_list(normalized["structure"]),
    )
