# safero/utils.py
import io
from typing import List, Optional, Sequence, Union

import pandas as pd

from safero.models import FireHotspot

BBOX_MARGIN = 0.5


def expand_bbox(bbox: Sequence[float], margin: float = BBOX_MARGIN) -> List[float]:
    min_lon, min_lat, max_lon, max_lat = bbox
    return [min_lon - margin, min_lat - margin, max_lon + margin, max_lat + margin]


def in_bbox(lat: float, lon: float, bbox: Sequence[float]) -> bool:
    min_lon, min_lat, max_lon, max_lat = bbox
    return min_lon <= lon <= max_lon and min_lat <= lat <= max_lat


def _to_float(value) -> float:
    number = pd.to_numeric(str(value).strip(), errors="coerce")
    if pd.isna(number):
        return 0.0
    return float(number)


def _confidence(value: str) -> Union[int, float, str]:
    """
    VIIRS publie la confiance en lettres (l/n/h), MODIS en pourcentage.
    On garde la forme numérique quand elle existe.
    """
    if not value:
        return "unknown"
    number = pd.to_numeric(value, errors="coerce")
    if pd.isna(number):
        return value
    number = float(number)
    return int(number) if number.is_integer() else number


def parse_firms_csv(csv_text: str, bbox: Optional[Sequence[float]] = None) -> List[FireHotspot]:
    """
    Transforme la réponse CSV de FIRMS en liste de FireHotspot.

    Les colonnes sont repérées par leur nom, l'ordre importe peu.
    Si `bbox` est donné, seuls les points à l'intérieur sont gardés.
    """
    if len(csv_text.strip().splitlines()) < 2:
        return []

    # Tout en texte : acq_time ("0135") ne doit pas devenir un entier
    df = pd.read_csv(io.StringIO(csv_text.strip()), dtype=str, keep_default_na=False,
                     on_bad_lines="skip")
    df.columns = [c.strip() for c in df.columns]
    df = df.fillna("")

    bright_col = "bright_ti4" if "bright_ti4" in df.columns else "brightness"
    for name in (bright_col, "latitude", "longitude", "confidence",
                 "acq_date", "acq_time", "satellite", "frp"):
        if name not in df.columns:
            df[name] = ""

    hotspots = []
    for i in df.index:
        row = df.loc[i]
        # Coordonnée illisible -> 0, comme les autres champs numériques
        lat, lon = _to_float(row["latitude"]), _to_float(row["longitude"])
        if bbox is not None and not in_bbox(lat, lon, bbox):
            continue

        hotspots.append(FireHotspot(
            latitude=lat,
            longitude=lon,
            brightness=_to_float(row[bright_col]),
            confidence=_confidence(row["confidence"].strip()),
            acq_date=row["acq_date"].strip(),
            acq_time=row["acq_time"].strip(),
            satellite=row["satellite"].strip() or "VIIRS",
            frp=_to_float(row["frp"]),
        ))

    return hotspots
