# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for the identity carried by a Supabase access token.
# =============================================================================

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Studio staff member extracted from a Supabase JWT.

    Only what the token itself carries; no database lookup.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    role: Optional[str] = None


class TokenInfo(BaseModel):
    """Response for token verification."""
    valid: bool = True
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None
