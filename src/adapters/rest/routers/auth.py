"""Auth endpoints: register, login (also served at /login) and refresh."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from factory import ServiceFactory
from domain.exceptions import (
    AuthenticationError,
    DuplicateIdentifierError,
    MissingCredentials,
    SessionError,
)
from application.dto import AuthToken, LoginRequest, RegisterRequest
from adapters.rest.dependencies import get_factory
from adapters.rest.schemas import RegisterBody, LoginBody, TokenResponse, RefreshBody

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

# Same text for unknown identifier and wrong password.
_AUTH_FAILED = "Authentication failed."


def _token_response(token: AuthToken) -> TokenResponse:
    return TokenResponse(
        access_token=token.access_token,
        token_type=token.token_type,
        user_id=token.user_id,
        display_name=token.display_name,
        expires_at=token.expires_at,
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterBody,
    factory: ServiceFactory = Depends(get_factory),
):
    auth_service = factory.create_authentication_service()
    try:
        identity = await auth_service.register(RegisterRequest(
            username=body.username,
            password=body.password,
            email=body.email,
            phone_number=body.phone_number,
            age=body.age,
            medical_history=body.medical_history,
        ))
    except DuplicateIdentifierError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        )
    except (MissingCredentials, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )
    return _token_response(factory.create_session_issuer().issue(identity))


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginBody,
    factory: ServiceFactory = Depends(get_factory),
):
    auth_service = factory.create_authentication_service()
    try:
        identity = await auth_service.login(LoginRequest(
            identifier=body.identifier,
            password=body.password,
        ))
    except MissingCredentials as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_AUTH_FAILED,
        )
    return _token_response(factory.create_session_issuer().issue(identity))


# Same handler at the top level: POST /login.
login_router = APIRouter(tags=["auth"])
login_router.add_api_route(
    "/login", login, methods=["POST"], response_model=TokenResponse,
)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshBody,
    factory: ServiceFactory = Depends(get_factory),
):
    """Re-issue a session token from a still-valid one.

    Expired tokens are not refreshable: the client has to log in again.
    """
    try:
        token = factory.create_session_issuer().refresh(body.token)
    except SessionError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        )
    return _token_response(token)
