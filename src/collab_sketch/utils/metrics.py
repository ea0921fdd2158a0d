"""
Metrics collection for collaborative sketch sessions
Simple metrics without external dependencies
"""

import time
import logging
from typing import Dict, Any
from datetime import datetime

logger = logging.getLogger(__name__)


class SimpleMetrics:
    """Simple in-process counters and gauges"""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.counters: Dict[str, int] = {}
        self.gauges: Dict[str, float] = {}
        self.start_time = time.time()

    def increment_counter(self, name: str, value: int = 1):
        """Increment a counter metric"""
        if self.enabled:
            self.counters[name] = self.counters.get(name, 0) + value

    def set_gauge(self, name: str, value: float):
        """Set a gauge metric value"""
        if self.enabled:
            self.gauges[name] = value

    def counter(self, name: str) -> int:
        return self.counters.get(name, 0)

    def get_metrics(self) -> Dict[str, Any]:
        """Get all metrics"""
        return {
            'counters': dict(self.counters),
            'gauges': dict(self.gauges),
            'uptime_seconds': time.time() - self.start_time,
            'timestamp': datetime.utcnow().isoformat()
        }


def setup_metrics(enabled: bool = True) -> SimpleMetrics:
    """Create a metrics collector for one session"""
    metrics = SimpleMetrics(enabled=enabled)
    logger.info(f"📊 Session metrics initialized (enabled={enabled})")
    return metrics
