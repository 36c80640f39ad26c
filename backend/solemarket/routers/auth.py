from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field

from ..auth import AuthService, get_auth_service, get_current_user
from ..backends import ProfileStore, utcnow
from ..deps import get_profile_store
from ..errors import AuthError
from ..models import AuthUser, UserProfile
from ..profiles import get_or_create_profile

router = APIRouter()


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    phone: str = Field(min_length=1)
    role: Literal["customer", "admin"] = "customer"
    address: Optional[str] = None


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    user: UserProfile


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
    profiles: ProfileStore = Depends(get_profile_store),
):
    """
    Create the auth user and its profile document with an empty cart and wishlist.
    """
    try:
        session = auth.sign_up(payload.email, payload.password)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    profile = UserProfile(
        id=session.user.id,
        name=payload.name.strip(),
        email=payload.email,
        phone=payload.phone,
        address=payload.address or "",
        role=payload.role,
        created_at=utcnow(),
    )
    profile = profiles.create_profile(profile)
    return AuthResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=profile,
    )


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
    profiles: ProfileStore = Depends(get_profile_store),
):
    try:
        session = auth.sign_in(payload.email, payload.password)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials") from exc
    # Guest carts stay where they are; nothing is merged into the account cart here.
    profile = get_or_create_profile(profiles, session.user)
    return AuthResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=profile,
    )


@router.get("/session", response_model=AuthUser)
def session(current_user: AuthUser = Depends(get_current_user)):
    return current_user
