# tenantguard/core/metrics.py
import logging
from threading import Lock
from typing import Any, Dict

logger = logging.getLogger(__name__)


class Metrics:
    """Track authorization decisions"""

    def __init__(self):
        self._lock = Lock()
        self.allowed_count = 0
        self.denied_count = 0
        self.reasons: Dict[str, int] = {}
        self.denied_permissions: Dict[str, int] = {}

    def track_decision(self, decision):
        """Count a decision by outcome and reason with thread safety"""
        with self._lock:
            if decision.allowed:
                self.allowed_count += 1
            else:
                self.denied_count += 1
                if decision.required_permission:
                    name = decision.required_permission
                    self.denied_permissions[name] = self.denied_permissions.get(name, 0) + 1

            reason = decision.reason.value
            self.reasons[reason] = self.reasons.get(reason, 0) + 1

    def get_stats(self) -> Dict[str, Any]:
        """Get current metrics with thread safety"""
        with self._lock:
            total = self.allowed_count + self.denied_count
            return {
                "total_decisions": total,
                "allowed": self.allowed_count,
                "denied": self.denied_count,
                "denial_rate": (self.denied_count / total * 100) if total > 0 else 0,
                "reasons": dict(self.reasons),
                "denied_permissions": dict(self.denied_permissions),
            }

    def reset(self):
        """Reset all metrics - useful for testing"""
        with self._lock:
            self.allowed_count = 0
            self.denied_count = 0
            self.reasons = {}
            self.denied_permissions = {}


# Global metrics instance
metrics = Metrics()


def get_current_metrics():
    """Get current authorization metrics"""
    return metrics.get_stats()
