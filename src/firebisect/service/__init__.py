"""Long-running event dispatch."""

from firebisect.service.dispatcher import Dispatcher

__all__ = ["Dispatcher"]
