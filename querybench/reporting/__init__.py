"""
Reporting

Console and file outputs for benchmark results.
"""

from querybench.reporting.console import print_console_report, render_console_report
from querybench.reporting.csv_export import write_runs_csv, write_statistics_csv
from querybench.reporting.json_export import write_json_report

__all__ = [
    "print_console_report",
    "render_console_report",
    "write_runs_csv",
    "write_statistics_csv",
    "write_json_report",
]
