"""
Authentication API endpoints for signup, login, token refresh and user information.
Provides JWT-based authentication with role-based access control.
"""

from fastapi import APIRouter, Depends, status
from app.models.user import User
from app.services.auth import AuthService
from app.services.error_handler import ErrorHandlerService
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
    CurrentUserResponse
)
from app.schemas.user import UserUpdate
from app.schemas.error import get_action_responses, get_auth_error_responses, get_error_responses
from app.utils.dependencies import get_auth_service, get_current_active_user
from app.utils.exceptions import APIException
from app.utils.rate_limit import rate_limit


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description="Register a client or agent account. Administrator accounts cannot sign up.",
    responses=get_action_responses(201, 400, 403, 409, 422, 429),
    dependencies=[Depends(rate_limit("auth"))]
)
async def signup(
    signup_data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new user and sign them in.

    Returns:
        Action result with the user and a token pair
    """
    try:
        user = await auth_service.signup(signup_data)
        access_token, refresh_token = auth_service.create_tokens(user)
        return ErrorHandlerService.action_success(
            user=AuthService.current_user_payload(user),
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer"
        )
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "signup")


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    responses=get_error_responses(401, 403, 422, 429),
    dependencies=[Depends(rate_limit("auth"))]
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    result = await auth_service.login(email=login_data.email, password=login_data.password)
    return LoginResponse.model_validate(result)


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token",
    responses=get_auth_error_responses()
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    """
    Create new access token from refresh token.

    Raises:
        InvalidTokenError: If refresh token is invalid
        TokenExpiredError: If refresh token is expired
        InactiveUserError: If user account is inactive
    """
    result = await auth_service.refresh_access_token(refresh_data.refresh_token)
    return AccessTokenResponse.model_validate(result)


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Get current authenticated user information",
    responses=get_auth_error_responses()
)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
) -> CurrentUserResponse:
    return CurrentUserResponse.model_validate(AuthService.current_user_payload(current_user))


@router.put(
    "/me",
    summary="Update profile",
    description="Change the display name, phone, avatar or password of the current user.",
    responses=get_action_responses(200, 400, 401, 403, 422)
)
async def update_current_user(
    profile_data: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service)
):
    try:
        user = await auth_service.update_profile(current_user, profile_data)
        return ErrorHandlerService.action_success(user=AuthService.current_user_payload(user))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "update_profile")
