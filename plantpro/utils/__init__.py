"""
Utility modules for PlantPro
"""

from .logger import get_logger, setup_logging
from .time import as_date, days_ago, ensure_utc, utc_today, utcnow

__all__ = [
    'get_logger',
    'setup_logging',
    'as_date',
    'days_ago',
    'ensure_utc',
    'utc_today',
    'utcnow'
]
