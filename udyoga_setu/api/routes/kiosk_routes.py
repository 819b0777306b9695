"""
Kiosk Routes

POST /kiosks - Register kiosk (admin)
GET /kiosks - List kiosks
GET /kiosks/{kiosk_code} - Get kiosk
POST /kiosks/{kiosk_code}/ping - Heartbeat from the device
POST /kiosks/{kiosk_code}/deactivate - Take a kiosk out of service (admin)
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from udyoga_setu.core.auth import get_current_admin
from udyoga_setu.services.kiosk_service import get_kiosk_service
from udyoga_setu.schemas.schemas import KioskCreate, KioskPing, KioskResponse

router = APIRouter(prefix="/kiosks", tags=["Kiosks"])


@router.post("", response_model=KioskResponse, status_code=201)
async def register_kiosk(data: KioskCreate, admin: dict = Depends(get_current_admin)):
    return get_kiosk_service().register_kiosk(data.model_dump())


@router.get("", response_model=List[KioskResponse])
async def list_kiosks(active_only: bool = Query(False)):
    return get_kiosk_service().list_kiosks(active_only=active_only)


@router.get("/{kiosk_code}", response_model=KioskResponse)
async def get_kiosk(kiosk_code: str):
    return get_kiosk_service().get_by_code(kiosk_code)


@router.post("/{kiosk_code}/ping", response_model=KioskResponse)
async def ping_kiosk(kiosk_code: str, data: Optional[KioskPing] = None):
    return get_kiosk_service().ping(kiosk_code, data.software_version if data else None)


@router.post("/{kiosk_code}/deactivate", response_model=KioskResponse)
async def deactivate_kiosk(kiosk_code: str, admin: dict = Depends(get_current_admin)):
    return get_kiosk_service().deactivate(kiosk_code)
