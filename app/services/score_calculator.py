"""
app/services/score_calculator.py
Weighted overall audit score (0–100) plus the score labels and summary line
shown in reports.
"""
from typing import Dict, List

# Percent weights, must sum to 100. Fixed, not configurable.
WEIGHTS: Dict[str, int] = {
    "seo":         35,
    "performance": 35,
    "security":    30,
}


def _clamp(score: int) -> int:
    return max(0, min(100, int(score)))


def calculate_overall_score(seo: int, performance: int, security: int) -> int:
    """
    round(0.35·seo + 0.35·performance + 0.30·security), halves rounded up.
    Integer arithmetic so x.5 totals never drift under float error.
    """
    weighted = (
        WEIGHTS["seo"] * _clamp(seo)
        + WEIGHTS["performance"] * _clamp(performance)
        + WEIGHTS["security"] * _clamp(security)
    )
    return (weighted + 50) // 100


def score_label(score: int) -> str:
    if score >= 80:
        return "Good"
    if score >= 50:
        return "Needs Improvement"
    return "Poor"


def score_color(score: int) -> str:
    if score >= 80:
        return "#22c55e"
    if score >= 50:
        return "#f59e0b"
    return "#ef4444"


def generate_summary(overall: int, seo: int, performance: int, security: int) -> str:
    """Short human-readable summary of an audit."""
    weak: List[str] = []
    if seo < 50:
        weak.append("SEO")
    if performance < 50:
        weak.append("performance")
    if security < 50:
        weak.append("security")

    summary = f"Overall score is {overall}/100 ({score_label(overall).lower()})."
    if weak:
        summary += f" Weakest areas: {', '.join(weak)}."
    else:
        summary += " No critical weaknesses detected."
    return summary
