from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from datarepo.context.scope import Scope
from datarepo.middleware.scope_md import get_request_scope
from datarepo.response import ResponseModel
from ..service import IdentityService

router = APIRouter()

class RegisterSchema(BaseModel):
    tenant_name: str
    username: str
    email: Optional[str] = None

class TenantUpdateSchema(BaseModel):
    name: str
    description: Optional[str] = None

class UserCreateSchema(BaseModel):
    username: str
    email: Optional[str] = None
    role: str = "member"

def get_identity_service(scope: Scope = Depends(get_request_scope)) -> IdentityService:
    """Dependency: create IdentityService bound to the request scope."""
    return IdentityService(scope)

@router.post("/register")
async def register(
    data: RegisterSchema,
    service: IdentityService = Depends(get_identity_service)
):
    """Register new tenant and its admin."""
    user = await service.register_tenant_admin(data.tenant_name, data.username, data.email)
    return ResponseModel.success(data=user.model_dump())

@router.get("/tenants")
async def list_tenants(service: IdentityService = Depends(get_identity_service)):
    tenants = await service.list_tenants()
    return ResponseModel.success(data=[tenant.model_dump() for tenant in tenants])

@router.get("/tenants/{tenant_id}")
async def get_tenant(tenant_id: int, service: IdentityService = Depends(get_identity_service)):
    tenant = await service.get_tenant(tenant_id)
    return ResponseModel.success(data=tenant.model_dump())

@router.put("/tenants/{tenant_id}")
async def update_tenant(
    tenant_id: int,
    data: TenantUpdateSchema,
    service: IdentityService = Depends(get_identity_service)
):
    tenant = await service.rename_tenant(tenant_id, data.name, data.description)
    return ResponseModel.success(data=tenant.model_dump())

@router.delete("/tenants/{tenant_id}")
async def delete_tenant(tenant_id: int, service: IdentityService = Depends(get_identity_service)):
    removed = await service.delete_tenant(tenant_id)
    return ResponseModel.success(data={"tenant_id": tenant_id, "users_removed": removed})

@router.post("/tenants/{tenant_id}/users")
async def add_user(
    tenant_id: int,
    data: UserCreateSchema,
    service: IdentityService = Depends(get_identity_service)
):
    user = await service.add_user(tenant_id, data.username, data.email, data.role)
    return ResponseModel.success(data=user.model_dump())

@router.get("/tenants/{tenant_id}/users")
async def list_users(tenant_id: int, service: IdentityService = Depends(get_identity_service)):
    users = await service.list_users(tenant_id)
    return ResponseModel.success(data=[user.model_dump() for user in users])

@router.get("/users/{username}")
async def get_user(username: str, service: IdentityService = Depends(get_identity_service)):
    user = await service.get_user(username)
    return ResponseModel.success(data=user.model_dump())
