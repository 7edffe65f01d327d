"""
PlantPro plantation analytics backend

This package includes:
- api: FastAPI application, persistence wiring, models and services
- analytics: Pure aggregation, trend and query composition logic
- reports: Report encoders (xlsx, csv, json, html)
"""

__version__ = "1.0.0"
