from fastapi import APIRouter, Depends
from gotrabandhus.api.dependencies import (
    get_auth_service,
    get_current_user,
    get_current_user_id,
    require_profile_complete,
)
from gotrabandhus.core.errors import raise_for_result
from gotrabandhus.schemas.user import (
    CompletionResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    UserRecord,
    UserResponse,
)
from gotrabandhus.services.auth_service import AuthService

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: UserRecord = Depends(get_current_user)):
    """Get the current user's profile"""
    # Only authentication is required - an incomplete profile must be
    # readable so the client can fill in the rest
    return ProfileResponse(profile=UserResponse.from_record(current_user))


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    profile_update: ProfileUpdateRequest,
    user_id: int = Depends(get_current_user_id),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Update any subset of profile fields; redirects to the dashboard once complete"""
    # changes() holds only keys the client actually sent, so omitted fields
    # keep their stored values; profileCompleted was dropped during parsing
    result = raise_for_result(auth_service.update_profile(user_id, profile_update.changes()))
    return ProfileUpdateResponse(
        profile=UserResponse.from_record(result.user),
        # null while incomplete - the client stays on the profile page
        redirect_to=result.redirect_to,
    )


@router.get("/profile/check-completion", response_model=CompletionResponse)
async def check_profile_completion(
    user_id: int = Depends(get_current_user_id),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Report whether the profile is complete and where to send the client if not"""
    # Evaluated from the stored record on every call, not from a cached flag
    completion = raise_for_result(auth_service.check_completion(user_id))
    return CompletionResponse(
        is_complete=completion.is_complete,
        redirect_to=completion.redirect_to,
        missing_fields=completion.missing_fields,
    )


@router.get("/dashboard")
async def dashboard(current_user: UserRecord = Depends(require_profile_complete)):
    """Example resource that needs a complete profile"""
    # require_profile_complete answers 403 with redirectTo=/profile before
    # this runs if any required field is still empty
    return {"message": "Access to dashboard granted", "nickname": current_user.nickname}
