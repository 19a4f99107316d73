from .metrics import BroadcastMetrics, MetricsCollector

__all__ = ["BroadcastMetrics", "MetricsCollector"]
