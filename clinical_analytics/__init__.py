"""
Clinical Analytics Engine

Stateless transforms that turn raw clinical event records into bounded,
render-ready summaries:

- Frequency ranking of tagged events (cognitive distortions)
- Exact-100 percentage rows (relapse emotional responses)
- Pruned, weighted stage flow graph (relapse sequences) and its layout
- Trigger intensity ranking and mood series

All transforms are synchronous pure functions that tolerate absent or
malformed input and never raise.
"""

from .engine import AnalyticsConfig, AnalyticsEngine, DashboardAnalytics, DashboardInputs, Panel

__version__ = "0.1.0"

__all__ = [
    'AnalyticsConfig',
    'AnalyticsEngine',
    'DashboardAnalytics',
    'DashboardInputs',
    'Panel',
]
