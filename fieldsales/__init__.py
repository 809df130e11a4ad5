"""
Field Sales Reporting Engine

Sales, attendance and ROI analytics for field sales teams.
"""

__version__ = "1.0.0"
