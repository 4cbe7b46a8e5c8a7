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
Analysis Session

Holds the single "current tree" reference of an analysis together with its
project metadata. Every edit is a pure function of the old snapshot, so the
session only swaps references; readers holding an older snapshot keep seeing
a consistent tree.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from . import editor
from .models import Project, Structure

logger = logging.getLogger(__name__)


class AnalysisSession:
    """
    Owns one project and its analysis tree for the lifetime of an editing session.
    """

    def __init__(self, project: Optional[Project] = None, structure: Structure = ()):
        self.project = project or Project()
        self.structure: Structure = tuple(structure)

    def apply(self, edit: Callable[..., Structure], *args: Any, **kwargs: Any) -> bool:
        """
        Apply one tree edit and store the resulting snapshot.

        Args:
            edit: Any editor operation taking the current structure first
            *args, **kwargs: Remaining edit parameters

        Returns:
            True if the snapshot changed, False for a no-op edit
        """
        updated = edit(self.structure, *args, **kwargs)
        changed = updated is not self.structure
        self.structure = updated
        if not changed:
            logger.debug(f"{getattr(edit, '__name__', edit)} left the tree unchanged")
        return changed

    def update_project(self, field_name: str, value: Any) -> Project:
        self.project = editor.update_project_field(self.project, field_name, value)
        return self.project

    def replace_all(self, project: Project, structure: Structure) -> None:
        """Overwrite the session with an imported document"""
        self.project = project
        self.structure = tuple(structure)
        logger.info(
            f"Loaded project '{project.name}' with {len(self.structure)} top-level elements"
        )

    def import_worksheet(self, text: str, importer=None):
        """
        Replace the tree with one parsed from a worksheet table.

        An import that produces nothing leaves the session untouched; the
        (falsy) result is returned either way so the caller can warn the user.
        """
        # Imported here to avoid a circular import with the ingest/reporting packages
        from ..ingest.worksheet_importer import WorksheetImporter

        result = (importer or WorksheetImporter()).parse(text)
        if result:
            self.structure = result.structure
        else:
            logger.warning("Worksheet import produced nothing, tree unchanged")
        return result

    def to_dict(self) -> Dict[str, Any]:
        from ..reporting.exporter import WorksheetExporter

        return WorksheetExporter.to_interchange(self.project, self.structure)

    def load_from_file(self, filepath: Union[str, Path]) -> bool:
        """
        Load a full-project interchange document.

        Returns False (and keeps the current state) if the file is not a
        valid document.
        """
        from ..reporting.exporter import load_interchange

        path = Path(filepath)
        document = load_interchange(path.read_bytes())
        if document is None:
            logger.warning(f"Invalid FMEA file format: {path}")
            return False
        self.replace_all(document.project, document.structure)
        return True

    def save_to_file(self, filepath: Union[str, Path]) -> Path:
        """Save the session as an interchange document, keeping a backup of any previous file"""
        from ..reporting.exporter import WorksheetExporter

        path = Path(filepath)
        if path.exists():
            backup_path = path.with_suffix(path.suffix + ".bak")
            path.replace(backup_path)
            logger.info(f"Created backup: {backup_path}")

        WorksheetExporter.export_to_json(path, self.project, self.structure)
        logger.info(f"Saved analysis '{self.project.name}' to {path}")
        return path

    def get_statistics(self) -> Dict[str, Any]:
        from ..reporting.views import analysis_statistics

        return analysis_statistics(self.structure)
