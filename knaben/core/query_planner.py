"""
Query Planner
Orders search queries from the most precise signal to the bare title
"""
from typing import List, Optional
import re

from ..models.search_result import QueryPlanEntry


def episode_code(season: int, episode: int) -> str:
    return f"S{int(season):02d}E{int(episode):02d}"


class QueryPlanner:
    """Builds the ordered query plan for one resolution"""

    def plan_episode(
        self,
        show_name: str,
        ep_code: str,
        date_variants: List[str],
        iso_date: Optional[str] = None,
    ) -> List[QueryPlanEntry]:
        """
        Episode plan, strongest first:
        1. title + episode code in three spellings (no date filter)
        2. title + each date variant
        3. title + ISO date
        4. bare title
        """
        dotted = re.sub(r'\s+', '.', show_name)
        # The episode code already pins the release; a date check here would
        # drop rows whose listed date drifts from the metadata.
        plan = [
            QueryPlanEntry(f"{show_name} {ep_code}", requires_date_filter=False),
            QueryPlanEntry(f"{show_name}.{ep_code}", requires_date_filter=False),
            QueryPlanEntry(f"{dotted}.{ep_code}", requires_date_filter=False),
        ]
        plan.extend(self.plan_title(show_name, date_variants, iso_date))
        return plan

    def plan_movie(self, title: str, date_variants: List[str], iso_date: Optional[str] = None) -> List[QueryPlanEntry]:
        return self.plan_title(title, date_variants, iso_date)

    def plan_title(self, title: str, date_variants: List[str], iso_date: Optional[str] = None) -> List[QueryPlanEntry]:
        plan = [QueryPlanEntry(f"{title} {variant}", requires_date_filter=True) for variant in date_variants or []]
        if iso_date:
            plan.append(QueryPlanEntry(f"{title} {iso_date}", requires_date_filter=True))
        plan.append(QueryPlanEntry(title, requires_date_filter=True))
        return plan
