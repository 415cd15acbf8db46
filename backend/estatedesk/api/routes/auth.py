"""
Authentication Routes

Endpoints:
- GET /auth/me - Get current user profile

Tokens are issued by the identity provider in front of this API. Requests
carry them in the access_token HttpOnly cookie or an Authorization: Bearer
header; see api.deps.get_current_user.
"""

from fastapi import APIRouter

from estatedesk.api.deps import CurrentUser
from estatedesk.schemas import Envelope, UserRead

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=Envelope[UserRead])
async def get_me(current_user: CurrentUser) -> Envelope[UserRead]:
    """
    Get the current authenticated user's profile.

    This endpoint is useful for:
    - Verifying authentication status
    - Fetching user info after page reload
    - Checking if session is still valid
    """
    return Envelope[UserRead](data=UserRead.model_validate(current_user))
