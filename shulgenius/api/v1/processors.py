# shulgenius/api/v1/processors.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from shulgenius.api.dependencies import CurrentUser, get_current_user, require_admin
from shulgenius.api.errors import http_error
from shulgenius.core.exceptions import ShulGeniusError
from shulgenius.db.database import get_db
from shulgenius.schemas.processor import ProcessorCreate, ProcessorOut
from shulgenius.services.registry_service import RegistryService

router = APIRouter()


@router.get("", response_model=List[ProcessorOut])
async def list_processors(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List active processors for the caller's organization"""
    return await RegistryService(db).list_processors(current_user.organization_id)


@router.post("", response_model=ProcessorOut, status_code=201)
async def create_processor(
    body: ProcessorCreate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await RegistryService(db).create_processor(current_user.organization_id, body)
    except ShulGeniusError as e:
        raise http_error(e)


@router.post("/{processor_id}/default", response_model=ProcessorOut)
async def set_default_processor(
    processor_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await RegistryService(db).set_default_processor(current_user.organization_id, processor_id)
    except ShulGeniusError as e:
        raise http_error(e)


@router.delete("/{processor_id}", response_model=ProcessorOut)
async def deactivate_processor(
    processor_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Soft delete; the processor also loses its default flag"""
    try:
        return await RegistryService(db).deactivate_processor(current_user.organization_id, processor_id)
    except ShulGeniusError as e:
        raise http_error(e)
