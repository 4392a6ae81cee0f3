# safero/regions.py
from typing import Dict, List, Optional

from safero.models import Region

# Bounding boxes [min_lon, min_lat, max_lon, max_lat]
REGIONS: Dict[str, Region] = {
    r.id: r
    for r in [
        Region(id="fagaras", name="Făgăraș", bbox=[24.5, 45.5, 25.5, 46.0]),
        Region(id="iasi", name="Iași", bbox=[27.5, 47.0, 27.8, 47.3]),
        Region(id="timisoara", name="Timișoara", bbox=[21.1, 45.6, 21.4, 45.9]),
        Region(id="craiova", name="Craiova", bbox=[23.7, 44.2, 24.0, 44.5]),
        Region(id="constanta", name="Constanța", bbox=[28.5, 44.1, 28.8, 44.4]),
        Region(id="baia_mare", name="Baia Mare", bbox=[23.4, 47.5, 23.7, 47.8]),
        Region(id="bucuresti", name="București", bbox=[25.9, 44.3, 26.2, 44.6]),
        Region(id="cluj", name="Cluj", bbox=[23.5, 46.7, 23.8, 47.0]),
    ]
}


def list_regions() -> List[Region]:
    return list(REGIONS.values())


def get_region(region_id: Optional[str]) -> Optional[Region]:
    if not region_id:
        return None
    return REGIONS.get(region_id)
