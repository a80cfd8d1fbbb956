"""PyQt6 user interface for ReportDiff."""
