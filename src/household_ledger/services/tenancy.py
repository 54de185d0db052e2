"""Tenancy guard: who is calling, and for which household."""

from uuid import UUID

from household_ledger.exceptions import MissingTenantError, NotAMemberError
from household_ledger.logging_config import get_logger
from household_ledger.repositories.interfaces import MembershipRepository
from household_ledger.services.auth import AuthService
from household_ledger.services.interfaces import Credentials, TenantContext

logger = get_logger(__name__)


class TenancyGuard:
    """Resolves a TenantContext for every household-scoped request.

    Checks run in a fixed order, each with its own failure:
    principal (401), tenant header (400), membership (403).
    """

    def __init__(
        self,
        auth_service: AuthService,
        memberships: MembershipRepository,
        header_name: str = "X-Household-ID",
    ) -> None:
        self._auth = auth_service
        self._memberships = memberships
        self._header_name = header_name

    @property
    def header_name(self) -> str:
        return self._header_name

    def resolve(self, credentials: Credentials, tenant_header: str | None) -> TenantContext:
        user_id = self._auth.resolve_principal(credentials)
        household_id = self.parse_household_id(tenant_header)
        return self.require_membership(user_id, household_id)

    def parse_household_id(self, tenant_header: str | None) -> UUID:
        if not tenant_header or not tenant_header.strip():
            raise MissingTenantError(self._header_name)
        try:
            return UUID(tenant_header.strip())
        except ValueError:
            raise MissingTenantError(self._header_name) from None

    def require_membership(self, user_id: UUID, household_id: UUID) -> TenantContext:
        # An unknown household has no memberships, so it is reported the same way.
        membership = self._memberships.get(user_id, household_id)
        if membership is None:
            logger.warning(
                "tenancy_denied",
                user_id=str(user_id),
                household_id=str(household_id),
            )
            raise NotAMemberError(household_id)
        return TenantContext(
            user_id=user_id,
            household_id=household_id,
            role=membership.role,
        )
