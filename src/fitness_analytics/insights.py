"""Correlation insights - turn coefficients into something a user can act on.

Only correlations that are at least moderate produce an insight. Significant
ones are asserted (high or medium priority) with templated recommendations;
non-significant ones are reported as tentative at low priority and carry no
recommendation. Weak correlations are dropped.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from fitness_analytics.correlation import (
    DEFAULT_SIGNIFICANCE_LEVEL,
    CorrelationStrength,
    LabeledCorrelation,
)


class InsightPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


@dataclass
class Insight:
    """One observation about how two metrics move together."""
    factor_a: str
    factor_b: str
    coefficient: float
    interpretation: str
    priority: InsightPriority
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'factor_a': self.factor_a,
            'factor_b': self.factor_b,
            'coefficient': round(self.coefficient, 4),
            'interpretation': self.interpretation,
            'priority': self.priority.value,
            'recommendations': list(self.recommendations),
        }


# Human-readable names for metrics
FACTOR_LABELS: Dict[str, str] = {
    'duration_minutes': 'workout duration',
    'calories': 'calories burned',
    'intensity': 'workout intensity',
    'form_score': 'form quality',
    'average_heart_rate': 'average heart rate',
    'work_rate': 'work rate',
    'training_load': 'training load',
    'weekly_workouts': 'weekly workout frequency',
    'sleep_hours': 'sleep duration',
    'sleep_quality': 'sleep quality',
    'bedtime_hour': 'bedtime',
    'stress_level': 'stress',
    'energy_level': 'energy',
    'hrv': 'heart rate variability',
    'resting_hr': 'resting heart rate',
    'protein_g': 'protein intake',
    'hydration_l': 'hydration',
    'readiness': 'readiness',
    'next_day_readiness': 'next-day readiness',
    'next_day_hrv': 'next-day HRV',
    'next_day_resting_hr': 'next-day resting heart rate',
    'next_day_energy': 'next-day energy',
}

# Action wording per driving factor: (when the relationship is positive, negative)
FACTOR_ACTIONS: Dict[str, tuple] = {
    'sleep_hours': ("Aim for consistent, longer sleep before key sessions",
                    "Check whether long sleep follows hard days rather than helps them"),
    'sleep_quality': ("Protect sleep quality: dark, cool room and a fixed wake time",
                      "Look at what else changes on nights you sleep well"),
    'bedtime_hour': ("Later bedtimes are not hurting you; keep the schedule that works",
                     "Move bedtime earlier on nights before training"),
    'stress_level': ("Stress is not costing you output; keep monitoring it",
                     "Schedule lighter sessions on high-stress days and add recovery work"),
    'protein_g': ("Keep protein intake up, especially after hard sessions",
                  "Review protein timing; more is not translating into recovery"),
    'hydration_l': ("Stay on top of hydration around training",
                    "Spread fluid intake across the day rather than around workouts"),
    'weekly_workouts': ("Your body handles frequency well; consider adding a session",
                        "Add a rest day when the week gets crowded"),
    'hrv': ("Use high-HRV days for your hardest sessions",
            "Treat low HRV mornings as a signal to go easier"),
    'form_score': ("Keep prioritising technique; it is paying off",
                   "Focus on technique before adding load"),
}
DEFAULT_ACTIONS = ("Keep doing what drives {a} up",
                   "Watch {a}: when it rises, {b} tends to fall")


def label_for(metric: str) -> str:
    return FACTOR_LABELS.get(metric, metric.replace('_', ' '))


def _priority(strength: CorrelationStrength, significant: bool) -> Optional[InsightPriority]:
    if strength is CorrelationStrength.WEAK:
        return None
    if not significant:
        return InsightPriority.LOW
    if strength is CorrelationStrength.STRONG:
        return InsightPriority.HIGH
    return InsightPriority.MEDIUM


def _interpretation(item: LabeledCorrelation, strength: CorrelationStrength, significant: bool) -> str:
    a = label_for(item.factor_a)
    b = label_for(item.factor_b)
    relation = "higher" if item.result.coefficient > 0 else "lower"
    text = (
        f"{strength.value.capitalize()} {item.result.direction.value} relationship: "
        f"higher {a} goes with {relation} {b} "
        f"(r={item.result.coefficient:.2f}, n={item.result.sample_size})"
    )
    if not significant:
        text += "; tentative, not statistically significant yet"
    return text


def recommendations_for(item: LabeledCorrelation, strength: CorrelationStrength) -> List[str]:
    """Templated recommendations for a significant correlation."""
    a = label_for(item.factor_a)
    b = label_for(item.factor_b)
    positive, negative = FACTOR_ACTIONS.get(item.factor_a, DEFAULT_ACTIONS)
    action = positive if item.result.coefficient > 0 else negative
    recommendations = [action.format(a=a, b=b)]
    if strength is CorrelationStrength.STRONG:
        recommendations.append(f"Track {a} closely; it is a strong lever on {b}")
    return recommendations


def generate_insights(
    correlations: Iterable[LabeledCorrelation],
    alpha: float = DEFAULT_SIGNIFICANCE_LEVEL,
) -> List[Insight]:
    """Build insights from labeled correlations.

    Args:
        correlations: Correlations to interpret
        alpha: Significance level for asserting an insight

    Returns:
        Insights sorted by priority, then by |r|, strongest first
    """
    insights = []
    for item in correlations:
        strength = item.result.strength
        significant = item.result.is_significant(alpha)
        priority = _priority(strength, significant)
        if priority is None:
            continue

        insights.append(Insight(
            factor_a=item.factor_a,
            factor_b=item.factor_b,
            coefficient=item.result.coefficient,
            interpretation=_interpretation(item, strength, significant),
            priority=priority,
            recommendations=recommendations_for(item, strength) if significant else [],
        ))

    insights.sort(key=lambda i: (i.priority.weight, abs(i.coefficient)), reverse=True)
    return insights
