"""HTTP route definitions for the account service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from schemas import AccountProfile

from ..domain.account import Account, serialize_account
from ..domain.contracts import CreateAccountInput, UpdateAccountInput
from ..domain.errors import InvalidCredentials, InvalidToken
from ..domain.service import AccountService
from ..metrics import ACCOUNTS_CREATED, LOGIN_ATTEMPTS
from ..security.tokens import TokenIssuer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

MISSING_CREDENTIALS = "email and password are required"


class CreateUserRequest(BaseModel):
    """Payload accepted when registering an account."""

    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    password: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")


class LoginRequest(BaseModel):
    """JSON body used to log in with email and password."""

    email: str | None = None
    password: str | None = None


class UpdateUserRequest(BaseModel):
    """Fields an authenticated user may change on their own account."""

    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    password: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")


class AuthResponse(BaseModel):
    """Response returned after a successful create or login."""

    success: bool = True
    token: str
    profile: AccountProfile
    message: str


class ProfileResponse(BaseModel):
    """Envelope wrapping the caller's own profile."""

    success: bool = True
    profile: AccountProfile
    message: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def get_token_issuer(request: Request) -> TokenIssuer:
    """Resolve the `TokenIssuer` stored on the FastAPI application state."""
    issuer: TokenIssuer = request.app.state.token_issuer
    return issuer


def get_current_account(
    authorization: str | None = Header(default=None),
    service: AccountService = Depends(get_service),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> Account:
    """Resolve the live account named by the bearer token."""
    account_id = issuer.account_id_from_header(authorization)
    account = service.get_account(account_id)
    if account is None:
        raise InvalidToken()
    return account


def _require_credentials(email: str | None, password: str | None) -> None:
    if not email or not password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_CREDENTIALS)


@router.post("", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: CreateUserRequest,
    service: AccountService = Depends(get_service),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthResponse:
    """Register an account and return a token for it."""
    _require_credentials(payload.email, payload.password)
    account = service.create_account(
        CreateAccountInput(
            email=payload.email,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
        )
    )
    ACCOUNTS_CREATED.inc()
    return AuthResponse(
        token=issuer.issue(account.account_id),
        profile=serialize_account(account),
        message="user created",
    )


@router.post("/login", response_model=AuthResponse)
def login_user(
    payload: LoginRequest,
    service: AccountService = Depends(get_service),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthResponse:
    """Check credentials and return a fresh token."""
    _require_credentials(payload.email, payload.password)
    try:
        account = service.authenticate(payload.email, payload.password)
    except InvalidCredentials:
        LOGIN_ATTEMPTS.labels(outcome="failure").inc()
        raise
    LOGIN_ATTEMPTS.labels(outcome="success").inc()
    logger.info("account %s logged in", account.account_id)
    return AuthResponse(
        token=issuer.issue(account.account_id),
        profile=serialize_account(account),
        message="user logged in",
    )


@router.get("", response_model=ProfileResponse)
def read_current_user(account: Account = Depends(get_current_account)) -> ProfileResponse:
    """Return the profile of the authenticated account."""
    return ProfileResponse(profile=serialize_account(account), message="user logged in")


@router.patch("", response_model=ProfileResponse)
def update_current_user(
    payload: UpdateUserRequest,
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_service),
) -> ProfileResponse:
    """Update the authenticated account's email, names, or password."""
    updated = service.update_account(
        account.account_id,
        UpdateAccountInput(
            email=payload.email,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
        ),
    )
    if updated is None:
        # Deleted between authentication and the write.
        raise InvalidToken()
    return ProfileResponse(profile=serialize_account(updated), message="user updated")


@router.delete("", response_model=MessageResponse)
def delete_current_user(
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_service),
) -> MessageResponse:
    """Soft-delete the authenticated account."""
    if not service.delete_account(account.account_id):
        raise InvalidToken()
    return MessageResponse(message="user deleted")
