"""FastAPI dependency injection — wired services & outcome translation."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from filebox.services import Services
from filebox.services import errors
from filebox.services.accounts import AccountController
from filebox.services.catalog import FileCatalog
from filebox.services.errors import AuthError, NotAuthenticated, ProviderError, ValidationError
from filebox.services.outcome import Outcome


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return services


def get_catalog(services: Services = Depends(get_services)) -> FileCatalog:
    return services.catalog


def get_accounts(services: Services = Depends(get_services)) -> AccountController:
    return services.accounts


def status_for(outcome: Outcome) -> int:
    """HTTP status for a failed outcome."""
    error = outcome.error
    if isinstance(error, NotAuthenticated):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(error, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(error, AuthError):
        if error.code == errors.TOO_MANY_REQUESTS:
            return status.HTTP_429_TOO_MANY_REQUESTS
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, ProviderError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def raise_for_outcome(outcome: Outcome) -> Outcome:
    """Pass successful outcomes through, turn failures into HTTPException."""
    if outcome.ok:
        return outcome
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(outcome.error, NotAuthenticated) else None
    raise HTTPException(
        status_code=status_for(outcome),
        detail=outcome.message,
        headers=headers,
    )
