"""FastAPI dependency functions: container, credentials, user and tenant."""

from typing import Annotated

from fastapi import Depends, Request

from household_ledger.container import Container, get_container
from household_ledger.domain.auth import User
from household_ledger.services.interfaces import Credentials, TenantContext


def get_app_container() -> Container:
    """The container serving this request. Tests override this dependency."""
    return get_container()


ContainerDep = Annotated[Container, Depends(get_app_container)]


def get_credentials(request: Request, container: ContainerDep) -> Credentials:
    """Collect the session cookie and bearer token, if present."""
    session_token = request.cookies.get(container.settings.session_cookie_name)

    bearer_token = None
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        bearer_token = token.strip()

    return Credentials(session_token=session_token or None, bearer_token=bearer_token)


CredentialsDep = Annotated[Credentials, Depends(get_credentials)]


def get_current_user(credentials: CredentialsDep, container: ContainerDep) -> User:
    return container.auth_service.current_user(credentials)


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_tenant(
    request: Request, credentials: CredentialsDep, container: ContainerDep
) -> TenantContext:
    guard = container.tenancy_guard
    return guard.resolve(credentials, request.headers.get(guard.header_name))


Tenant = Annotated[TenantContext, Depends(get_tenant)]
