"""API routes for climate outlooks."""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from backend.schemas.outlook import OutlookResponse
from backend.services.export_service import ExportService
from backend.services.outlook_service import OutlookService
from backend.api.dependencies import get_export_service, get_outlook_service

router = APIRouter(tags=["outlook"])


@router.get("/outlook", response_model=OutlookResponse)
def get_outlook(
    lat: float = Query(..., description="Latitude in degrees"),
    lon: float = Query(..., description="Longitude in degrees"),
    date: str = Query(..., description="Target date (YYYY-MM-DD)"),
    window: Optional[int] = Query(None, description="Window size in days"),
    units: Optional[str] = Query(None, description="metric or imperial"),
    format: str = Query("json", pattern=r"^(json|csv)$"),
    outlook_service: OutlookService = Depends(get_outlook_service),
    export_service: ExportService = Depends(get_export_service),
):
    """
    Get the climate outlook for a location and day.

    Returns variable summaries, exceedance probabilities and the five
    canonical risk labels. `format=csv` returns the same content as a
    sectioned CSV download.
    """
    result = outlook_service.compute_outlook(lat, lon, date, window, units)
    if format == "csv":
        return Response(
            content=export_service.to_csv(result),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{export_service.filename(result)}"'},
        )
    return result
