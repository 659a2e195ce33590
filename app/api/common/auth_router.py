"""Authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.core.exceptions import NotAuthenticatedError
from app.core.rate_limit import limiter, login_rate_limit
from app.dependencies import (
    OptionalUserDep,
    SettingsDep,
    get_auth_service,
)
from app.schemas.auth_schema import IdentityResponse, LoginRequest, MessageResponse
from app.schemas.response_schema import ERROR_RESPONSES, ApiResponse, success_response
from app.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


async def parse_login_request(request: Request) -> LoginRequest:
    """Read credentials from a JSON body or an HTML form post."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        form = await request.form()
        data = {key: form.get(key) for key in ("username", "password") if key in form}
    else:
        try:
            data = await request.json()
        except ValueError:
            data = {}
    if not isinstance(data, dict):
        data = {}
    try:
        return LoginRequest.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


@router.post(
    "/login",
    response_model=ApiResponse[IdentityResponse],
    responses={401: ERROR_RESPONSES[401]},
)
@limiter.limit(login_rate_limit)
async def login(
    request: Request,
    response: Response,
    body: Annotated[LoginRequest, Depends(parse_login_request)],
    auth_service: AuthServiceDep,
    settings: SettingsDep,
) -> dict:
    """Check the credentials and set the session cookie."""
    result = await auth_service.login(body)
    response.set_cookie(
        key=settings.auth.cookie_name,
        value=result.token,
        max_age=settings.auth.max_age_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.app.is_production,
    )
    return success_response(
        IdentityResponse(
            username=result.username,
            is_admin=settings.auth.is_admin(result.username),
        )
    )


@router.post("/logout", response_model=ApiResponse[MessageResponse])
async def logout(response: Response, settings: SettingsDep) -> dict:
    """Replace the session cookie with an expired, empty one."""
    response.set_cookie(
        key=settings.auth.cookie_name,
        value="",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.app.is_production,
    )
    return success_response(MessageResponse(message="Successfully logged out"))


@router.get(
    "/me",
    response_model=ApiResponse[IdentityResponse],
    responses={401: ERROR_RESPONSES[401]},
)
async def me(user: OptionalUserDep) -> dict:
    """Identity bound to the session cookie."""
    if user is None:
        raise NotAuthenticatedError
    return success_response(
        IdentityResponse(username=user.username, is_admin=user.is_admin)
    )
