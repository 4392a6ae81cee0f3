# safero/models.py
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["low", "medium", "high", "critical"]
FloodRisk = Literal["low", "medium", "high"]
VegetationStress = Literal["low", "moderate", "high"]
VegetationHealth = Literal["poor", "moderate", "good"]
DataAvailability = Literal["limited", "moderate", "good"]


class CamelModel(BaseModel):
    """Modèle dont les champs sont exposés en camelCase côté JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Region(BaseModel):
    id: str
    name: str
    bbox: List[float]  # [min_lon, min_lat, max_lon, max_lat]


class GEEAnalysis(CamelModel):
    ndvi_mean: Optional[float] = None
    ndvi_min: Optional[float] = None
    ndvi_max: Optional[float] = None
    flood_percentage: Optional[float] = None
    water_percentage: Optional[float] = None
    vegetation_stress: Optional[VegetationStress] = None
    data_date: Optional[str] = None
    source: Literal["gee"] = "gee"
    gee_connected: bool = False


class GEEConnectivity(BaseModel):
    connected: bool
    message: str


class FireHotspot(BaseModel):
    latitude: float
    longitude: float
    brightness: float = 0.0
    confidence: Union[int, float, str] = "unknown"
    acq_date: str = ""
    acq_time: str = ""
    satellite: str = "VIIRS"
    frp: float = 0.0


class FireData(CamelModel):
    active_hotspots: int = 0
    high_confidence_count: int = 0
    max_brightness: float = 0.0
    total_frp: float = Field(default=0.0, alias="totalFRP")


class FireAnalysis(FireData):
    fire_risk: RiskLevel = "low"

    def data(self) -> FireData:
        return FireData.model_validate(self.model_dump(exclude={"fire_risk"}))


class HazardIndicators(CamelModel):
    flood_risk: FloodRisk = "medium"
    vegetation_health: VegetationHealth = "moderate"
    fire_risk: RiskLevel = "low"
    data_availability: DataAvailability = "limited"
    last_update: Optional[str] = None
    radar_coverage: bool = False
    optical_coverage: bool = False
    fire_data: FireData = FireData()


class ProductMetadata(CamelModel):
    id: str
    name: str
    acquisition_date: str
    cloud_cover: Optional[float] = None
    product_type: str
    satellite: str
    processing_level: str


class SatelliteRequest(CamelModel):
    """Paramètres acceptés par /satellite-data (query string ou corps JSON)."""

    action: Optional[str] = None
    region_id: Optional[str] = None
    days_back: Optional[int] = None
    max_cloud_cover: Optional[float] = None
    satellite: Optional[str] = None
