from typing import Optional

from fastapi import Depends, Header, Request

from config.settings import Settings
from core.entities.user import User
from core.exceptions import AuthError
from core.repositories.database_repository import DatabaseRepository
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository
from core.services.scheduler import Scheduler
from core.services.token_issuer import TokenClaims, TokenIssuer


# всё собирается в create_app и лежит в app.state
def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_user_repo(request: Request) -> UserRepository:
    return request.app.state.user_repo

def get_server_repo(request: Request) -> ServerRepository:
    return request.app.state.server_repo

def get_database_repo(request: Request) -> DatabaseRepository:
    return request.app.state.database_repo

def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer

def get_scheduler(request: Request) -> Scheduler:
    return request.app.state.scheduler

def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("No token provided")
    return authorization.split(" ", 1)[1].strip()

def get_current_claims(
    token: str = Depends(get_bearer_token),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenClaims:
    return issuer.verify(token)

def get_current_user(
    claims: TokenClaims = Depends(get_current_claims),
    repo: UserRepository = Depends(get_user_repo),
) -> User:
    user = repo.get_by_id(claims.user_id)
    if user is None:
        raise AuthError("User no longer exists")
    return user
