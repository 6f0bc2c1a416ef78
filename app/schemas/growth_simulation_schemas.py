"""
Pydantic schemas for the Growth Simulation module.
Includes request/response schemas for simulations, crop profiles,
the crop calendar calculator and measurement exports.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from app.services.crop_profiles import CropId


# ==================== SIMULATION SCHEMAS ====================

class SimulationParameters(BaseModel):
    """Measured readings of the hydroponic system. Any finite value is scored."""
    ph: float = Field(..., allow_inf_nan=False, description="Solution pH")
    ec: float = Field(..., allow_inf_nan=False, description="Electrical conductivity mS/cm")
    air_temperature: float = Field(..., allow_inf_nan=False, description="Air temperature °C")
    solution_temperature: float = Field(..., allow_inf_nan=False, description="Nutrient solution temperature °C")
    light_intensity: float = Field(..., allow_inf_nan=False, description="Light intensity lux")
    co2_level: float = Field(..., allow_inf_nan=False, description="CO2 concentration ppm")
    humidity: float = Field(..., allow_inf_nan=False, description="Relative humidity %")
    water_level: float = Field(..., allow_inf_nan=False, description="Reservoir water level %")
    oxygen_level: float = Field(..., allow_inf_nan=False, description="Dissolved oxygen mg/L")


class SimulationRequest(SimulationParameters):
    """Request schema for a growth simulation."""
    crop_id: str = Field(..., min_length=1, max_length=50, description="Crop identifier, e.g. 'lettuce'")


class SimulationResponse(BaseModel):
    """Growth simulation result."""
    crop_id: CropId
    is_viable: bool
    yield_percentage: int = Field(ge=0, le=100)
    expected_grams: int = Field(ge=0)
    yield_per_square_meter: float = Field(ge=0, description="kg per m2")
    growth_time: int = Field(ge=1, description="Days to harvest")
    issues: List[str]
    recommendations: List[str]


class DefaultParametersResponse(SimulationRequest):
    """Default snapshot used to prefill a new simulation."""
    pass


# ==================== CROP PROFILE SCHEMAS ====================

class ParameterRangeSchema(BaseModel):
    """Optimal range plus optional critical bounds."""
    min: float
    max: float
    critical_min: Optional[float] = None
    critical_max: Optional[float] = None


class GrowthTimeSchema(BaseModel):
    optimal: int
    max: int


class CropSummary(BaseModel):
    """Summary of a registered crop."""
    id: CropId
    name: str
    scientific_name: Optional[str] = None
    growth_time: GrowthTimeSchema
    max_yield: float


class CropListResponse(BaseModel):
    crops: List[CropSummary]


class CropProfileResponse(CropSummary):
    """Full crop profile with ranges for every parameter."""
    optimal: Dict[str, ParameterRangeSchema]


# ==================== CROP CALENDAR SCHEMAS ====================

class CropCalendarRequest(BaseModel):
    """Request schema for the crop calendar calculator."""
    crop_id: str = Field(..., min_length=1, max_length=50)
    air_temperature: float = Field(..., allow_inf_nan=False, description="Air temperature °C")
    ph: float = Field(..., allow_inf_nan=False, description="Solution pH")
    light_hours: float = Field(default=16, ge=0, le=24, description="Daily photoperiod hours")


class CropCalendarResponse(BaseModel):
    crop_id: str
    common_name: str
    estimated_days: List[int] = Field(..., min_length=2, max_length=2)
    warnings: List[str]
    notes: Optional[str] = None


class CatalogCrop(BaseModel):
    """Reference catalog entry."""
    id: str
    common_name: str
    scientific_name: Optional[str] = None
    category: str
    growth_days_range: List[int]
    optimal_temp_c: List[float]
    optimal_ph: List[float]
    light_lux: Optional[float] = None
    notes: Optional[str] = None


class CatalogResponse(BaseModel):
    crops: List[CatalogCrop]


# ==================== MEASUREMENT EXPORT SCHEMAS ====================

class MeasurementRecord(SimulationRequest):
    """Timestamped snapshot of readings, as recorded by a grower."""
    id: Optional[str] = Field(None, max_length=100, description="Grower-side record id, shown in the report")
    timestamp: datetime


class MeasurementExportRequest(BaseModel):
    """Batch of measurement snapshots to export."""
    user_name: str = Field(default="Grower", max_length=100)
    measurements: List[MeasurementRecord] = Field(..., min_length=1, max_length=1000)

    def records(self) -> List[Dict[str, Any]]:
        return [m.model_dump() for m in self.measurements]
