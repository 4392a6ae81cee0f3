# safero/services/risk_service.py
from typing import List, Optional

from safero.models import (
    FireAnalysis,
    FireHotspot,
    GEEAnalysis,
    HazardIndicators,
)

# Seuils incendie : (nb de points, nb haute confiance, FRP total)
CRITICAL_FIRE = (10, 5, 100.0)
HIGH_FIRE = (5, 2, 50.0)
HIGH_CONFIDENCE_PERCENT = 80

# Seuils NDVI et inondation
NDVI_GOOD = 0.5
NDVI_POOR = 0.3
FLOOD_LOW = 3.0
FLOOD_HIGH = 7.0


def is_high_confidence(hotspot: FireHotspot) -> bool:
    confidence = hotspot.confidence
    if isinstance(confidence, str):
        return confidence.lower() in ("high", "h")
    return confidence >= HIGH_CONFIDENCE_PERCENT


def calculate_fire_risk(hotspots: List[FireHotspot]) -> FireAnalysis:
    """
    Classe le risque incendie d'une région à partir des points FIRMS.

    low -> medium dès un point, puis high / critical selon le nombre de
    points, le nombre de détections haute confiance et la FRP cumulée.
    """
    if not hotspots:
        return FireAnalysis()

    count = len(hotspots)
    high_confidence = sum(1 for h in hotspots if is_high_confidence(h))
    total_frp = sum(h.frp or 0 for h in hotspots)

    if count >= CRITICAL_FIRE[0] or high_confidence >= CRITICAL_FIRE[1] or total_frp > CRITICAL_FIRE[2]:
        fire_risk = "critical"
    elif count >= HIGH_FIRE[0] or high_confidence >= HIGH_FIRE[1] or total_frp > HIGH_FIRE[2]:
        fire_risk = "high"
    else:
        fire_risk = "medium"

    return FireAnalysis(
        fire_risk=fire_risk,
        active_hotspots=count,
        high_confidence_count=high_confidence,
        max_brightness=max(h.brightness for h in hotspots),
        total_frp=total_frp,
    )


def vegetation_stress(ndvi_mean: float) -> str:
    if ndvi_mean > NDVI_GOOD:
        return "low"
    if ndvi_mean > NDVI_POOR:
        return "moderate"
    return "high"


def vegetation_health(ndvi_mean: Optional[float]) -> str:
    # NDVI absent ou nul : pas de conclusion
    if not ndvi_mean:
        return "moderate"
    if ndvi_mean > NDVI_GOOD:
        return "good"
    if ndvi_mean < NDVI_POOR:
        return "poor"
    return "moderate"


def flood_risk(flood_percentage: Optional[float]) -> str:
    if flood_percentage is None:
        return "medium"
    if flood_percentage < FLOOD_LOW:
        return "low"
    if flood_percentage > FLOOD_HIGH:
        return "high"
    return "medium"


def calculate_hazard_indicators(
    gee_analysis: Optional[GEEAnalysis],
    fire_hotspots: Optional[List[FireHotspot]] = None,
) -> HazardIndicators:
    has_gee = gee_analysis is not None and gee_analysis.gee_connected
    fire_analysis = calculate_fire_risk(fire_hotspots or [])

    return HazardIndicators(
        flood_risk=flood_risk(gee_analysis.flood_percentage if gee_analysis else None),
        vegetation_health=vegetation_health(gee_analysis.ndvi_mean if gee_analysis else None),
        fire_risk=fire_analysis.fire_risk,
        data_availability="good" if has_gee else "limited",
        last_update=gee_analysis.data_date if gee_analysis else None,
        radar_coverage=False,
        optical_coverage=has_gee,
        fire_data=fire_analysis.data(),
    )
