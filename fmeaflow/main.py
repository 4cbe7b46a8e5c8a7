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
Main entry point for fmeaflow

Command-line interface for importing worksheet tables, exporting reports and
requesting structure suggestions.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from fmeaflow.analysis_tree import AnalysisSession, FmeaType, Project
from fmeaflow.config.settings import load_config_overrides
from fmeaflow.ingest import WorksheetImporter
from fmeaflow.llm_interface import AgentContext, StructureSuggestionAgent, SuggestionService
from fmeaflow.reporting import WorksheetExporter
from fmeaflow.utils.env_loader import load_env_file

logger = logging.getLogger("fmeaflow")

EXIT_OK = 0
EXIT_NOTHING_IMPORTED = 1
EXIT_SERVICE_FAILED = 2


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Setup logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def _load_session(path: str) -> Optional[AnalysisSession]:
    session = AnalysisSession()
    if not Path(path).is_file():
        logger.error(f"File not found: {path}")
        return None
    if not session.load_from_file(path):
        logger.error(f"Not a valid FMEA project file: {path}")
        return None
    return session


def cmd_import_table(args, config) -> int:
    text = Path(args.table).read_text(encoding="utf-8")
    result = WorksheetImporter(config["import"]).parse(text)
    if not result:
        logger.error(f"No valid data found in {args.table}")
        return EXIT_NOTHING_IMPORTED

    project = Project(
        name=args.project_name or Path(args.table).stem,
        type=FmeaType(args.type),
    )
    session = AnalysisSession(project=project, structure=result.structure)
    output = session.save_to_file(args.output)

    print(f"Imported {args.table}")
    for key, value in result.summary().items():
        print(f"  {key}: {value}")
    print(f"Project file: {output}")
    return EXIT_OK


def cmd_export_csv(args, config) -> int:
    session = _load_session(args.document)
    if session is None:
        return EXIT_NOTHING_IMPORTED

    output = args.output or str(
        Path(args.document).with_name(
            WorksheetExporter.export_filename(session.project, "_FMEA.csv")
        )
    )
    WorksheetExporter.export_to_csv(output, session.structure, config["export"])
    print(f"Worksheet: {output}")
    return EXIT_OK


def cmd_stats(args, config) -> int:
    session = _load_session(args.document)
    if session is None:
        return EXIT_NOTHING_IMPORTED
    print(json.dumps(session.get_statistics(), indent=2))
    return EXIT_OK


def cmd_suggest_structure(args, config) -> int:
    session = _load_session(args.document)
    if session is None:
        return EXIT_NOTHING_IMPORTED

    agent = StructureSuggestionAgent(SuggestionService.from_config(config["llm"]))
    output = agent.run(AgentContext.for_project(session.project, session.structure))
    if not output.success:
        for error in output.errors:
            logger.error(f"Structure suggestion failed: {error}")
        return EXIT_SERVICE_FAILED

    session.structure = output.structure
    target = session.save_to_file(args.output or args.document)
    print(f"Suggested elements: {len(output.suggestions or [])}")
    print(f"Project file: {target}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fmeaflow", description="AIAG-VDA FMEA worksheet tooling"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write log output to this file",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML file with import/export/llm overrides",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser(
        "import-table", help="Build a project file from a flat worksheet table"
    )
    import_parser.add_argument("table", help="Worksheet table (CSV)")
    import_parser.add_argument(
        "-o", "--output", required=True, help="Project file (JSON) to write"
    )
    import_parser.add_argument(
        "--project-name", default=None, help="Project name (default: table file name)"
    )
    import_parser.add_argument(
        "--type",
        default=FmeaType.DFMEA.value,
        choices=[t.value for t in FmeaType],
        help="FMEA type (default: DFMEA)",
    )
    import_parser.set_defaults(handler=cmd_import_table)

    export_parser = subparsers.add_parser(
        "export-csv", help="Write the worksheet report of a project file"
    )
    export_parser.add_argument("document", help="Project file (JSON)")
    export_parser.add_argument(
        "-o", "--output", default=None, help="CSV file (default: <project name>_FMEA.csv)"
    )
    export_parser.set_defaults(handler=cmd_export_csv)

    stats_parser = subparsers.add_parser("stats", help="Print analysis statistics")
    stats_parser.add_argument("document", help="Project file (JSON)")
    stats_parser.set_defaults(handler=cmd_stats)

    suggest_parser = subparsers.add_parser(
        "suggest-structure", help="Ask the suggestion service for structure elements"
    )
    suggest_parser.add_argument("document", help="Project file (JSON)")
    suggest_parser.add_argument(
        "-o", "--output", default=None, help="Output project file (default: overwrite input)"
    )
    suggest_parser.set_defaults(handler=cmd_suggest_structure)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    load_env_file(Path.cwd() / ".env")

    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    config = load_config_overrides(args.config)
    try:
        return args.handler(args, config)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"{args.command} failed: {e}")
        return EXIT_NOTHING_IMPORTED


if __name__ == "__main__":
    sys.exit(main())
