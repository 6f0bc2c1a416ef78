"""
Growth Simulation Router.
Provides endpoints for growth simulations, crop profiles, the crop calendar
calculator and measurement report exports.
"""
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from datetime import datetime
import logging

from app.schemas.growth_simulation_schemas import (
    SimulationRequest,
    SimulationResponse,
    DefaultParametersResponse,
    CropListResponse,
    CropProfileResponse,
    CropCalendarRequest,
    CropCalendarResponse,
    CatalogResponse,
    MeasurementExportRequest,
)
from app.services.crop_profiles import UnknownCropError, lookup, list_crops, resolve_crop_id
from app.services.crop_calendar import estimate_crop_calendar, load_crop_catalog
from app.services.growth_simulation_rules import DEFAULT_PARAMETERS
from app.services.growth_simulator import InputParameters, growth_simulator
from app.services.growth_simulation_excel_service import growth_simulation_excel_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/growth-simulation", tags=["growth-simulation"])


@router.post("/simulate", response_model=SimulationResponse)
async def simulate_growth(request: SimulationRequest):
    """
    Simulate growth for a crop under the measured conditions.

    Returns viability, expected yield, days to harvest, the issues found
    and corrective recommendations.
    """
    try:
        crop_id = resolve_crop_id(request.crop_id)
        params = InputParameters.from_dict({**request.model_dump(), "crop_id": crop_id})
        result = growth_simulator.simulate(params)
    except UnknownCropError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(f"Simulation {crop_id.value}: yield={result.yield_percentage}%, days={result.growth_time}")
    if not result.is_viable:
        logger.warning(f"Simulation {crop_id.value}: non-viable conditions ({len(result.issues)} issues)")

    return SimulationResponse(crop_id=crop_id, **result.to_dict())


@router.get("/default-parameters", response_model=DefaultParametersResponse)
async def get_default_parameters():
    """Get the default snapshot used to prefill a new simulation."""
    return DEFAULT_PARAMETERS


@router.get("/crops", response_model=CropListResponse)
async def get_crops():
    """Get list of crops with a growing profile."""
    return {"crops": list_crops()}


@router.get("/crops/{crop_id}", response_model=CropProfileResponse)
async def get_crop_profile(crop_id: str):
    """Get the full growing profile for a crop."""
    try:
        profile = lookup(crop_id)
    except UnknownCropError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return profile.to_dict()


# ============== Crop Calendar Endpoints ==============

@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog():
    """Get the reference crop catalog used by the crop calendar."""
    return {"crops": load_crop_catalog()}


@router.post("/crop-calendar", response_model=CropCalendarResponse)
async def calculate_crop_calendar(request: CropCalendarRequest):
    """Estimate days to harvest for a catalog crop with pH/temperature/light warnings."""
    try:
        estimate = estimate_crop_calendar(
            request.crop_id,
            air_temperature=request.air_temperature,
            ph=request.ph,
            light_hours=request.light_hours,
        )
    except UnknownCropError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return estimate.to_dict()


# ============== Export Endpoints ==============

@router.post("/excel")
async def export_measurements_excel(request: MeasurementExportRequest):
    """
    Generate an Excel report for a batch of measurement snapshots.

    Returns the Excel file as a downloadable response.
    """
    try:
        excel_buffer = growth_simulation_excel_service.generate_measurements_excel(
            records=request.records(),
            user_name=request.user_name,
        )
    except UnknownCropError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(f"Excel export: {len(request.measurements)} measurements for {request.user_name}")
    filename = f"growth_simulation_{datetime.now().strftime('%Y%m%d_%H%M')}.xlsx"

    return StreamingResponse(
        excel_buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )
