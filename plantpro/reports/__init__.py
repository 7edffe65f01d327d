"""
Report rendering for PlantPro
"""

from .renderers import (
    PLANT_LOT_COLUMNS,
    ReportData,
    render_csv,
    render_html,
    render_json,
    render_workbook,
)

__all__ = [
    'PLANT_LOT_COLUMNS',
    'ReportData',
    'render_csv',
    'render_html',
    'render_json',
    'render_workbook'
]
