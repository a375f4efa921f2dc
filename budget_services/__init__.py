"""
budget_services -- Package init and public API.

Responsibility:
    Read-side composition over the module services: milestone, project and
    portfolio views, and the risk-analysis snapshot/envelope round trip.

Architecture position:
    Services -- composes budget_modules/ over one session.

    Dependency direction:
        budget_services/ -> budget_modules/ (allowed)
        budget_services/ -> budget_kernel/  (allowed)
        budget_modules/  -> budget_services/ (FORBIDDEN)
        budget_kernel/   -> budget_services/ (FORBIDDEN)
"""

from budget_services.aggregation import AggregationService
from budget_services.views import MilestoneView, PortfolioView, ProjectView, render_to_dict

__all__ = [
    "AggregationService",
    "MilestoneView",
    "PortfolioView",
    "ProjectView",
    "render_to_dict",
]
