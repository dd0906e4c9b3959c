"""Console dashboard layer: backend client, view state and auto refresh"""

from .refresh import AutoRefresh
from .state import DashboardState

__all__ = [
    "AutoRefresh",
    "DashboardState",
]
