from fastapi import APIRouter, Depends, status
from gotrabandhus.api.dependencies import get_auth_service, get_current_user
from gotrabandhus.core.errors import raise_for_result
from gotrabandhus.schemas.user import (
    AuthResponse,
    CurrentUserResponse,
    LoginRequest,
    RegisterRequest,
    UserRecord,
    UserResponse,
)
from gotrabandhus.services.auth_service import AuthService, AuthSession

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(session: AuthSession) -> AuthResponse:
    # UserResponse has no password field, so the hash can never leak here
    return AuthResponse(
        user=UserResponse.from_record(session.user),
        token=session.token,
        redirect_to=session.redirect_to,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Register a new user; the client is sent to complete their profile next"""
    # Body validation (email format, password length) already ran - a bad
    # body never reaches this point and is answered with 400
    # Duplicate email comes back as a failure result and raises ApiError (400)
    session = raise_for_result(auth_service.register(user_data))
    return _auth_response(session)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Login and get a bearer token"""
    # Unknown email and wrong password both end up as the same 401
    # Generic error message prevents email enumeration
    session = raise_for_result(auth_service.login(credentials))
    # redirectTo is /dashboard for complete profiles, /profile otherwise
    return _auth_response(session)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(current_user: UserRecord = Depends(get_current_user)):
    """Get current user information"""
    # get_current_user has already rejected missing/invalid tokens with 401
    return CurrentUserResponse(user=UserResponse.from_record(current_user))
