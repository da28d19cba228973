"""Auth routes — sign-up, sign-in, sign-out against Firebase Auth."""

import logging

from fastapi import APIRouter, Depends

from filebox.api.deps import get_accounts, get_services, raise_for_outcome
from filebox.schemas.auth import IdentityOut, MessageResponse, SignInRequest, SignUpRequest
from filebox.services import Services
from filebox.services.accounts import AccountController

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/signup", response_model=MessageResponse)
async def sign_up(body: SignUpRequest, accounts: AccountController = Depends(get_accounts)):
    """Create an account; the new user is signed in straight away."""
    outcome = raise_for_outcome(
        await accounts.sign_up(body.email, body.password, body.confirm_password)
    )
    return MessageResponse(message=outcome.message)


@router.post("/signin", response_model=MessageResponse)
async def sign_in(body: SignInRequest, accounts: AccountController = Depends(get_accounts)):
    outcome = raise_for_outcome(await accounts.sign_in(body.email, body.password))
    return MessageResponse(message=outcome.message)


@router.post("/signout", response_model=MessageResponse)
async def sign_out(accounts: AccountController = Depends(get_accounts)):
    outcome = raise_for_outcome(await accounts.sign_out())
    return MessageResponse(message=outcome.message)


@router.get("/me", response_model=IdentityOut | None)
async def me(services: Services = Depends(get_services)):
    """The signed-in identity, or null."""
    identity = services.auth.identity
    if identity is None:
        return None
    return IdentityOut(uid=identity.uid, email=identity.email)
