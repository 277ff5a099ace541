"""
Settings API Endpoints
Public business settings: tax rate, business info and opening hours
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from sourdough.api.deps import get_business_settings, get_tax_service
from sourdough.domain.settings import TaxRateResponse
from sourdough.services.business_settings_service import BusinessSettingsService
from sourdough.services.tax_service import TaxService

router = APIRouter()


@router.get("/tax-rate", response_model=TaxRateResponse)
async def get_tax_rate(
    zone_id: Optional[str] = Query(None, description="Delivery zone for by_zone tax settings"),
    service: TaxService = Depends(get_tax_service),
):
    """Current tax rate, e.g. {"rate": 0.08, "percentage": "8.00", "name": "Sales Tax"}"""
    rate = service.get_tax_rate(zone_id)
    tax_settings = service.get_tax_settings()

    return TaxRateResponse(
        rate=rate,
        percentage=f"{rate * 100:.2f}",
        name=tax_settings.name if tax_settings else "Sales Tax",
    )


@router.get("/business-info")
async def get_business_info(service: BusinessSettingsService = Depends(get_business_settings)):
    return {"status": "success", "data": service.get_business_info().model_dump()}


@router.get("/hours")
async def get_operating_hours(service: BusinessSettingsService = Depends(get_business_settings)):
    """Opening hours per weekday plus the grouped display text"""
    return {
        "status": "success",
        "data": service.get_operating_hours().model_dump(),
        "text": service.get_operating_hours_text(),
    }
