from fastapi import APIRouter

from hcp.api.deps import AppSettings, CurrentActor, Repos
from hcp.schemas.auth import LoginRequest, TokenResponse
from hcp.services.auth_service import AuthService


router = APIRouter(tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, repos: Repos, config: AppSettings):
    """
    Authenticate an admin and return a signed access token.

    The returned user never includes the stored password hash.
    """
    return await AuthService(repos, config).login(data.email, data.password)


@router.get("/me")
async def get_me(actor: CurrentActor, repos: Repos):
    """Get the admin the current token was issued to."""
    return repos.admins.public(actor)
