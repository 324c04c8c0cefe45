"""
Profile endpoints for the authenticated user:
  GET /me/me            — fetch own profile
  PUT /me/edit-profile  — overwrite profile fields
"""
from fastapi import APIRouter, Depends

from postboard.clients.storage_client import StorageClient, get_storage
from postboard.deps import get_current_user, get_user_store
from postboard.models import User
from postboard.schemas import EditProfileRequest, MeResponse, StatusResponse, UserPublic
from postboard.stores.users import UserStore

router = APIRouter()


@router.get("/me", response_model=MeResponse)
async def get_me(user: User = Depends(get_current_user)):
    return MeResponse(user=UserPublic.model_validate(user))


@router.put("/edit-profile", response_model=StatusResponse)
async def edit_profile(
    body: EditProfileRequest,
    user: User = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
    storage: StorageClient = Depends(get_storage),
):
    """
    Picture fields carry object keys from the uploader and are stored as
    public URLs. Names and pictures already embedded in comments, replies
    and likes keep their old values.
    """
    fields = body.model_dump(exclude={"profile_pic", "profile_background"})
    fields["profile_pic"] = storage.public_url(body.profile_pic)
    fields["profile_background"] = storage.public_url(body.profile_background)
    await users.update_profile(user, **fields)
    return StatusResponse()
