"""Custom report processing.

Drives report jobs from creation to download and turns downloaded
share-of-voice files into normalized rows and decisions.

:var __all__: List of public exports from this module
:type __all__: List[str]
"""

from .csv_parser import SOV_HEADER_ALIASES, parse_csv_line, parse_float, parse_int, parse_report_csv
from .decisions import Recommendation, build_decision_table, classify
from .pipeline import PollState, ReportPipeline, ReportPoller
from .sov import SOVReportPipeline, SOVResult

__all__ = [
    "PollState",
    "Recommendation",
    "ReportPipeline",
    "ReportPoller",
    "SOVReportPipeline",
    "SOVResult",
    "SOV_HEADER_ALIASES",
    "build_decision_table",
    "classify",
    "parse_csv_line",
    "parse_float",
    "parse_int",
    "parse_report_csv",
]
