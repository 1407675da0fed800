import math
from typing import Optional

from ..models import HealthReport, RebalancingAnalysis


def generate_insights(report: HealthReport) -> str:
    """Return a short narrative about a health report.

    Rule-based so it works offline and in tests.
    """
    total = report.total_score
    if total >= 85:
        outlook = "in excellent shape"
    elif total >= 70:
        outlook = "on a good track"
    elif total >= 50:
        outlook = "fair but has gaps"
    else:
        outlook = "in need of attention"

    text = f"Your financial health score is {total:.0f}/100; your plan is {outlook}."
    top = report.suggestions[0] if report.suggestions else None
    if top is not None and top.factor != "general":
        text += f" Biggest opportunity: {top.title.lower()}."

    projection = report.projection
    if projection is not None and projection.retirement_goal > 0:
        if projection.reaches_goal:
            text += f" You are projected to reach your goal in {projection.years_to_goal:.0f} years."
        elif math.isinf(projection.years_to_goal):
            text += " At the current savings level the retirement goal is out of reach."
    return text


def rebalancing_summary(analysis: RebalancingAnalysis) -> Optional[str]:
    """One sentence about a rebalancing analysis, or None when nothing is due."""
    if not analysis.needs_rebalancing:
        return None
    verdict = {
        "proceed": "the expected benefit justifies the cost",
        "consider": "the benefit roughly covers the cost",
        "defer": "costs currently outweigh the benefit",
    }[analysis.cost_benefit.verdict]
    return (
        f"Rebalancing urgency is {analysis.urgency} (max drift {analysis.max_deviation:.1f} pts); "
        f"{verdict}."
    )
