"""
workisready/api/admin_users.py

Purpose: Account management (admin only)

- List, create (pre-approved), edit, approve/disapprove, delete
- Bulk approve, disapprove and delete
"""

from fastapi import APIRouter, Depends, status

from workisready.api.dependencies import get_user_service, require_admin
from workisready.schemas.requests import AdminUserCreate, AdminUserUpdate, BulkIds
from workisready.services.user_service import UserService

router = APIRouter(prefix="/admin/users", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("")
async def list_users(users: UserService = Depends(get_user_service)):
    return {"success": True, "users": await users.list_users()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(payload: AdminUserCreate, users: UserService = Depends(get_user_service)):
    user = await users.create_user(payload.name, payload.email, payload.password, **payload.profile())
    return {"success": True, "message": "User created successfully", "user": user}


# ============================================================
# BULK
# ============================================================

@router.patch("/bulk-approve")
async def bulk_approve(payload: BulkIds, users: UserService = Depends(get_user_service)):
    modified = await users.bulk_approve(payload.ids)
    return {"success": True, "message": f"{modified} users approved", "modifiedCount": modified}


@router.patch("/bulk-disapprove")
async def bulk_disapprove(payload: BulkIds, users: UserService = Depends(get_user_service)):
    modified = await users.bulk_disapprove(payload.ids)
    return {"success": True, "message": f"{modified} users disapproved", "modifiedCount": modified}


@router.delete("/bulk-delete")
async def bulk_delete(payload: BulkIds, users: UserService = Depends(get_user_service)):
    deleted = await users.bulk_delete(payload.ids)
    return {"success": True, "message": f"{deleted} users deleted", "deletedCount": deleted}


# ============================================================
# SINGLE USER
# ============================================================

@router.put("/{user_id}")
async def update_user(user_id: str, payload: AdminUserUpdate, users: UserService = Depends(get_user_service)):
    user = await users.update_user(user_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "message": "User updated successfully", "user": user}


@router.patch("/{user_id}/approve")
async def approve_user(user_id: str, users: UserService = Depends(get_user_service)):
    user = await users.set_approval(user_id, True)
    return {"success": True, "message": "User approved successfully", "user": user}


@router.patch("/{user_id}/disapprove")
async def disapprove_user(user_id: str, users: UserService = Depends(get_user_service)):
    user = await users.set_approval(user_id, False)
    return {"success": True, "message": "User disapproved", "user": user}


@router.delete("/{user_id}")
async def delete_user(user_id: str, users: UserService = Depends(get_user_service)):
    await users.delete_user(user_id)
    return {"success": True, "message": "User deleted successfully"}
