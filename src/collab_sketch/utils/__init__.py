from .config import Settings, get_settings
from .logging_config import setup_logging
from .metrics import SimpleMetrics, setup_metrics
from .thumbnail import load_thumbnail, make_thumbnail

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "SimpleMetrics",
    "setup_metrics",
    "make_thumbnail",
    "load_thumbnail",
]
