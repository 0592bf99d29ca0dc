"""Page collection driver."""

from .collector import EventCallback, LinkCollector, TabInfo, collect_blocking

__all__ = ["EventCallback", "LinkCollector", "TabInfo", "collect_blocking"]
