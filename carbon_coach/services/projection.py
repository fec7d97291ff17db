# carbon_coach/services/projection.py
"""Proyección a 12 meses de la huella y comparación entre las dos últimas entradas."""
import math
from typing import List, Optional, Sequence, Tuple

from carbon_coach.api.v1.schemas.footprint import FootprintComparison, ProjectionPoint
from carbon_coach.services.prompts import describe_trend

DEFAULT_BASELINE = 10.2
PROJECTION_MONTHS = 12
BASELINE_MONTHLY_DRIFT = 0.1
STRATEGY_FLOOR = 0.3
STRETCH_FLOOR = 0.2
STRETCH_MULTIPLIER = 1.5
REGRESSION_WINDOW = 7
UPWARD_SLOPE_REPLACEMENT = 0.015


def linear_regression(values: Sequence[float]) -> Tuple[float, float]:
    """Mínimos cuadrados sobre x = 0..n-1. Devuelve (pendiente, ordenada)."""
    n = len(values)
    if n < 2:
        return 0.0, (float(values[0]) if n else 0.0)
    x_mean = (n - 1) / 2
    y_mean = sum(values) / n
    num = sum((i - x_mean) * (values[i] - y_mean) for i in range(n))
    den = sum((i - x_mean) ** 2 for i in range(n))
    slope = num / den if den != 0 else 0.0
    return slope, y_mean - slope * x_mean


def _eased_progress(month: int, adoption_months: int) -> float:
    progress = min(month / adoption_months, 1) if adoption_months > 0 else 1
    return 1 - (1 - progress) ** 2


def project_savings(
    baseline: float,
    total_savings: float,
    adoption_months: int,
    stretch: bool = False,
) -> List[ProjectionPoint]:
    points = []
    for i in range(PROJECTION_MONTHS + 1):
        eased = _eased_progress(i, adoption_months)
        with_strategies = max(baseline - total_savings * eased, baseline * STRATEGY_FLOOR)
        stretch_value = max(baseline - total_savings * STRETCH_MULTIPLIER * eased, baseline * STRETCH_FLOOR)
        points.append(ProjectionPoint(
            month="Now" if i == 0 else f"Month {i}",
            baseline=round(baseline + i * BASELINE_MONTHLY_DRIFT, 2),
            withStrategies=round(with_strategies, 2),
            stretch=round(stretch_value, 2) if stretch else None,
        ))
    return points


def add_prediction(
    points: List[ProjectionPoint],
    totals_newest_first: Sequence[float],
    baseline: float,
) -> List[ProjectionPoint]:
    """
    Añade la línea de predicción basada en la tendencia histórica.

    Si la regresión sube, se fuerza una pendiente negativa moderada. Cada valor
    queda acotado entre withStrategies (suelo) y baseline (techo) de su punto.
    """
    if len(totals_newest_first) < 2:
        return points
    chronological = list(reversed(list(totals_newest_first)[:REGRESSION_WINDOW]))
    slope, intercept = linear_regression(chronological)
    effective_slope = -abs(intercept * UPWARD_SLOPE_REPLACEMENT) if slope > 0 else slope

    predicted_points = []
    for i, point in enumerate(points):
        raw = baseline + effective_slope * i
        clamped = min(max(raw, point.withStrategies), point.baseline)
        predicted_points.append(point.model_copy(update={"predicted": round(clamped, 2)}))
    return predicted_points


def compare_totals(current: Optional[float], previous: Optional[float]) -> FootprintComparison:
    if current is None or previous is None:
        return FootprintComparison(current=current, previous=previous)
    # redondeo hacia arriba en .5, no al par
    change = math.floor((current - previous) / (previous or 1) * 100 + 0.5)
    return FootprintComparison(
        current=current,
        previous=previous,
        changePercent=change,
        trend=describe_trend(current, previous),
    )
