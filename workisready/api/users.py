"""
workisready/api/users.py

Purpose: The caller's own account

- Profile read/update (multipart, optional avatar)
- Activity stats
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from utils.constants import PROFILE_UPDATED_MESSAGE
from workisready.api.dependencies import get_current_user, get_user_service
from workisready.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile")
async def get_profile(user: Dict[str, Any] = Depends(get_current_user), users: UserService = Depends(get_user_service)):
    return {"success": True, "user": await users.get_profile(str(user["_id"]))}


@router.put("/profile")
async def update_profile(
    fname: Optional[str] = Form(None),
    sname: Optional[str] = Form(None),
    oname: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    whatsapp: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    region: Optional[str] = Form(None),
    district: Optional[str] = Form(None),
    profile_image: Optional[UploadFile] = File(None, alias="profileImage"),
    user: Dict[str, Any] = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    fields = {
        "fname": fname,
        "sname": sname,
        "oname": oname,
        "phone": phone,
        "whatsapp": whatsapp,
        "location": location,
        "region": region,
        "district": district,
    }
    updated = await users.update_profile(str(user["_id"]), fields, profile_image)
    return {"success": True, "message": PROFILE_UPDATED_MESSAGE, "user": updated}


@router.get("/stats")
async def get_stats(user: Dict[str, Any] = Depends(get_current_user), users: UserService = Depends(get_user_service)):
    return {"success": True, "stats": await users.stats(user)}
