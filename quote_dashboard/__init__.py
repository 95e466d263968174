# quote_dashboard/__init__.py
"""
Quotes Dashboard Package

- config: Environment-driven settings (.env + defaults)
- premium_recognition: Premium recognition & goal attainment engine

Usage:
    from quote_dashboard import config, QuoteMetrics
"""

from .config import config, Config, EngineSettings
from .premium_recognition import QuoteMetrics, DealFilters, resolve_period

__all__ = [
    'config',
    'Config',
    'EngineSettings',
    'QuoteMetrics',
    'DealFilters',
    'resolve_period',
]

__version__ = '1.0.0'
