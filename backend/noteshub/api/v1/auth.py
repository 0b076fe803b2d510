from typing import Any, Optional

from fastapi import APIRouter, Depends, Response, status

from noteshub.api.deps import get_auth_service, get_current_user, reusable_oauth2
from noteshub.models.auth_user import AuthUser
from noteshub.schemas.auth import SignInRequest, SignUpRequest, Token, UserResponse
from noteshub.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(request: SignUpRequest, auth: AuthService = Depends(get_auth_service)) -> Any:
    """
    Create an account. The optional username seeds the profile.
    """
    return await auth.sign_up(request.email, request.password, request.username)


@router.post("/login", response_model=Token)
async def login(request: SignInRequest, auth: AuthService = Depends(get_auth_service)) -> Any:
    session = await auth.sign_in(request.email, request.password)
    return Token(access_token=session.access_token, user=UserResponse.model_validate(session.user))


@router.get("/session", response_model=UserResponse)
async def read_session(user: AuthUser = Depends(get_current_user)) -> Any:
    return user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: Optional[str] = Depends(reusable_oauth2),
    auth: AuthService = Depends(get_auth_service),
):
    if token:
        await auth.sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
