# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-in happens client-side with Supabase Auth; this route lets the
# dashboard check that a stored token is still accepted by the API.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, TokenInfo

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/verify", response_model=TokenInfo)
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> TokenInfo:
    """
    Verify that the current token is valid.

    Raises:
        401: If token is invalid or expired
    """
    return TokenInfo(
        user_id=str(user.id),
        email=user.email,
        role=user.role,
    )
