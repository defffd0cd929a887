"""Tests for correlation insight generation."""

from fitness_analytics.correlation import CorrelationResult, LabeledCorrelation
from fitness_analytics.insights import (
    Insight,
    InsightPriority,
    generate_insights,
    label_for,
)


def labeled(factor_a: str, factor_b: str, r: float, p: float, n: int = 30) -> LabeledCorrelation:
    return LabeledCorrelation(
        factor_a=factor_a,
        factor_b=factor_b,
        result=CorrelationResult(coefficient=r, p_value=p, sample_size=n),
    )


class TestGenerateInsights:
    """Tests for priority and recommendation rules."""

    def test_strong_significant_is_high(self):
        insights = generate_insights([labeled("sleep_hours", "intensity", 0.82, 0.001)])
        assert len(insights) == 1
        insight = insights[0]
        assert insight.priority is InsightPriority.HIGH
        assert insight.recommendations
        assert "sleep duration" in insight.interpretation

    def test_moderate_significant_is_medium(self):
        insights = generate_insights([labeled("stress_level", "form_score", -0.5, 0.01)])
        assert insights[0].priority is InsightPriority.MEDIUM
        assert insights[0].recommendations

    def test_not_significant_is_tentative(self):
        """Test a strong but non-significant correlation carries no recommendation."""
        insights = generate_insights([labeled("hrv", "intensity", 0.75, 0.2, n=5)])
        assert insights[0].priority is InsightPriority.LOW
        assert insights[0].recommendations == []
        assert "tentative" in insights[0].interpretation

    def test_weak_dropped(self):
        """Test weak correlations never produce an insight, significant or not."""
        assert generate_insights([
            labeled("protein_g", "next_day_readiness", 0.2, 0.001, n=400),
            labeled("hydration_l", "next_day_energy", 0.1, 0.6),
        ]) == []

    def test_sign_selects_recommendation(self):
        positive = generate_insights([labeled("stress_level", "intensity", 0.8, 0.001)])[0]
        negative = generate_insights([labeled("stress_level", "intensity", -0.8, 0.001)])[0]
        assert positive.recommendations[0] != negative.recommendations[0]

    def test_unknown_factor_uses_default_template(self):
        insight = generate_insights([labeled("training_load", "next_day_hrv", -0.6, 0.01)])[0]
        assert "training load" in insight.recommendations[0]

    def test_sorted_by_priority_then_magnitude(self):
        insights = generate_insights([
            labeled("hrv", "form_score", 0.5, 0.01),
            labeled("sleep_hours", "intensity", 0.75, 0.001),
            labeled("stress_level", "intensity", -0.9, 0.001),
            labeled("bedtime_hour", "duration_minutes", 0.95, 0.3, n=4),
        ])
        assert [(i.factor_a, i.priority) for i in insights] == [
            ("stress_level", InsightPriority.HIGH),
            ("sleep_hours", InsightPriority.HIGH),
            ("hrv", InsightPriority.MEDIUM),
            ("bedtime_hour", InsightPriority.LOW),
        ]

    def test_custom_alpha(self):
        """Test a stricter significance level demotes an insight."""
        item = labeled("sleep_hours", "intensity", 0.8, 0.03)
        assert generate_insights([item])[0].priority is InsightPriority.HIGH
        assert generate_insights([item], alpha=0.01)[0].priority is InsightPriority.LOW

    def test_empty(self):
        assert generate_insights([]) == []


class TestInsightDataclass:
    def test_to_dict(self):
        insight = Insight(
            factor_a="sleep_hours",
            factor_b="intensity",
            coefficient=0.81234,
            interpretation="Strong positive relationship",
            priority=InsightPriority.HIGH,
            recommendations=["Sleep more"],
        )
        d = insight.to_dict()
        assert d["priority"] == "high"
        assert d["coefficient"] == 0.8123
        assert d["recommendations"] == ["Sleep more"]

    def test_label_for_unknown_metric(self):
        assert label_for("custom_metric") == "custom metric"
