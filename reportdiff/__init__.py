"""
ReportDiff - side-by-side comparison of original and edited reports.
"""

__version__ = "1.0.0"
