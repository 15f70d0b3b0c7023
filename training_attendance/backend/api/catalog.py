from fastapi import APIRouter, Depends, status, Request
from typing import List

from ..services.catalog_service import CatalogService
from ..services.exceptions import ServiceError
from ..models.db_models import STAFF_ROLES
from ..models.redis_models import SessionUser
from .schemas.catalog import (
    NamedEntryRequest,
    NamedEntryResponse,
    JobTitleRequest,
    JobTitleResponse,
    CatalogCreateResponse
)
from .schemas.session import MessageResponse
from .auth import get_current_user
from .dependencies import get_catalog_service, verify_role
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/catalog", tags=["Catalog"])


# === Departments ===

@router.get("/departments", response_model=List[NamedEntryResponse])
@limiter.limit("60/minute")
async def list_departments(request: Request, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    try:
        return await service.list_departments()
    except ServiceError as e:
        raise to_http_exception(e)

@router.post("/departments", response_model=CatalogCreateResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_department(request: Request, entry: NamedEntryRequest, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    verify_role(user, STAFF_ROLES)
    try:
        department = await service.create_department(entry.name, entry.description)
    except ServiceError as e:
        raise to_http_exception(e)
    return CatalogCreateResponse(id=department.id, message="Department created successfully")

@router.put("/departments/{entry_id}", response_model=MessageResponse)
@limiter.limit("30/minute")
async def update_department(request: Request, entry_id: int, entry: NamedEntryRequest, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    verify_role(user, STAFF_ROLES)
    try:
        await service.update_department(entry_id, entry.name, entry.description)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Department updated successfully")

@router.delete("/departments/{entry_id}", response_model=MessageResponse)
@limiter.limit("30/minute")
async def delete_department(request: Request, entry_id: int, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    verify_role(user, STAFF_ROLES)
    try:
        await service.deactivate_department(entry_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Department deleted successfully")


# === Job titles ===

@router.get("/job-titles", response_model=List[JobTitleResponse])
@limiter.limit("60/minute")
async def list_job_titles(request: Request, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    try:
        return await service.list_job_titles()
    except ServiceError as e:
        raise to_http_exception(e)

@router.post("/job-titles", response_model=CatalogCreateResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_job_title(request: Request, entry: JobTitleRequest, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    verify_role(user, STAFF_ROLES)
    try:
        job_title = await service.create_job_title(entry.title, entry.department_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return CatalogCreateResponse(id=job_title.id, message="Job title created successfully")

@router.put("/job-titles/{entry_id}", response_model=MessageResponse)
@limiter.limit("30/minute")
async def update_job_title(request: Request, entry_id: int, entry: JobTitleRequest, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    verify_role(user, STAFF_ROLES)
    try:
        await service.update_job_title(entry_id, entry.title, entry.department_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Job title updated successfully")

@router.delete("/job-titles/{entry_id}", response_model=MessageResponse)
@limiter.limit("30/minute")
async def delete_job_title(request: Request, entry_id: int, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    verify_role(user, STAFF_ROLES)
    try:
        await service.deactivate_job_title(entry_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Job title deleted successfully")


# === Training types ===

@router.get("/training-types", response_model=List[NamedEntryResponse])
@limiter.limit("60/minute")
async def list_training_types(request: Request, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    try:
        return await service.list_training_types()
    except ServiceError as e:
        raise to_http_exception(e)

@router.post("/training-types", response_model=CatalogCreateResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_training_type(request: Request, entry: NamedEntryRequest, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    verify_role(user, STAFF_ROLES)
    try:
        training_type = await service.create_training_type(entry.name, entry.description)
    except ServiceError as e:
        raise to_http_exception(e)
    return CatalogCreateResponse(id=training_type.id, message="Training type created successfully")

@router.put("/training-types/{entry_id}", response_model=MessageResponse)
@limiter.limit("30/minute")
async def update_training_type(request: Request, entry_id: int, entry: NamedEntryRequest, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    verify_role(user, STAFF_ROLES)
    try:
        await service.update_training_type(entry_id, entry.name, entry.description)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Training type updated successfully")

@router.delete("/training-types/{entry_id}", response_model=MessageResponse)
@limiter.limit("30/minute")
async def delete_training_type(request: Request, entry_id: int, user: SessionUser = Depends(get_current_user), service: CatalogService = Depends(get_catalog_service)):
    verify_role(user, STAFF_ROLES)
    try:
        await service.deactivate_training_type(entry_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Training type deleted successfully")
