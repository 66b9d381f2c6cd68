from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from config.settings import Settings
from core.entities.user import User
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository
from core.services.token_issuer import TokenClaims, TokenIssuer
from core.use_cases.account_use_cases import authenticate, create_account, request_password_reset
from infrastructure.web.dependencies import (
    get_current_claims, get_current_user, get_server_repo, get_settings,
    get_token_issuer, get_user_repo,
)
from infrastructure.web.schemas import (
    MessageResponse, ServerResponse, UserResponse, server_out, user_out,
)


router = APIRouter(prefix="/api/auth", tags=["auth"])


class SignupRequest(BaseModel):
    username: str
    email: str
    password: str

class LoginRequest(BaseModel):
    # в поле email можно прислать и username
    email: Optional[str] = None
    username: Optional[str] = None
    password: str

class ForgotRequest(BaseModel):
    email: str

class AuthResponse(BaseModel):
    token: str
    user: UserResponse

class SignupResponse(AuthResponse):
    server: ServerResponse

class VerifyResponse(BaseModel):
    user: UserResponse


@router.post("/signup", response_model=SignupResponse, status_code=201)
def signup(
    payload: SignupRequest,
    users: UserRepository = Depends(get_user_repo),
    servers: ServerRepository = Depends(get_server_repo),
    issuer: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings),
):
    user, server = create_account(
        users,
        servers,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        starting_coins=settings.STARTING_COINS,
    )
    return SignupResponse(token=issuer.issue(user), user=user_out(user), server=server_out(server))

@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    users: UserRepository = Depends(get_user_repo),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    user = authenticate(users, payload.email or payload.username or "", payload.password)
    return AuthResponse(token=issuer.issue(user), user=user_out(user))

@router.get("/verify", response_model=VerifyResponse)
def verify(current_user: User = Depends(get_current_user)):
    return VerifyResponse(user=user_out(current_user))

@router.post("/logout", response_model=MessageResponse)
def logout(claims: TokenClaims = Depends(get_current_claims)):
    # токен без состояния, отзывать нечего
    return MessageResponse(message="Logged out successfully")

@router.post("/forgot", response_model=MessageResponse)
def forgot_password(payload: ForgotRequest, users: UserRepository = Depends(get_user_repo)):
    request_password_reset(users, payload.email)
    return MessageResponse(message="If that email is registered, a reset link has been sent")
