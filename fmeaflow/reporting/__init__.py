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
Read-only views and exports of an analysis tree.
"""

from .exporter import (
    COLUMN_TITLES,
    InterchangeDocument,
    WorksheetExporter,
    load_interchange,
)
from .views import (
    RiskRow,
    WorksheetRow,
    analysis_statistics,
    function_index,
    risk_rows,
    worksheet_rows,
)

__all__ = [
    "COLUMN_TITLES",
    "InterchangeDocument",
    "RiskRow",
    "WorksheetExporter",
    "WorksheetRow",
    "analysis_statistics",
    "function_index",
    "load_interchange",
    "risk_rows",
    "worksheet_rows",
]
