"""Households, their members and invitations to join them."""

from uuid import UUID

from household_ledger.config import Settings, get_settings
from household_ledger.domain.auth import User
from household_ledger.domain.households import Household, Invitation, Membership
from household_ledger.domain.value_objects import InvitationStatus, Role
from household_ledger.exceptions import (
    ConflictError,
    ForbiddenError,
    HouseholdNotFoundError,
    InvalidOperationError,
    InvitationNotFoundError,
    NotAMemberError,
    OwnerRequiredError,
)
from household_ledger.logging_config import get_logger
from household_ledger.repositories.interfaces import (
    HouseholdRepository,
    InvitationRepository,
    MembershipRepository,
    UserRepository,
)
from household_ledger.repositories.sqlite import SQLiteDatabase
from household_ledger.services.interfaces import (
    HouseholdDetails,
    InvitationPreview,
    InvitationView,
    MemberView,
)

logger = get_logger(__name__)


class HouseholdService:
    """Household lifecycle and membership management.

    Households are addressed explicitly by id here rather than through the
    tenant header, since a user must be able to list and join households
    before any of them is selected.
    """

    def __init__(
        self,
        database: SQLiteDatabase,
        households: HouseholdRepository,
        memberships: MembershipRepository,
        invitations: InvitationRepository,
        users: UserRepository,
        settings: Settings | None = None,
    ) -> None:
        self._db = database
        self._households = households
        self._memberships = memberships
        self._invitations = invitations
        self._users = users
        self._settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Households
    # -------------------------------------------------------------------------

    def create_household(self, user: User, name: str) -> Household:
        """Create a household with the caller as its OWNER, atomically."""
        household = Household(name=name)
        membership = Membership(
            user_id=user.id, household_id=household.id, role=Role.OWNER
        )
        with self._db.transaction():
            self._households.add(household)
            self._memberships.add(membership)

        logger.info(
            "household_created", household_id=str(household.id), user_id=str(user.id)
        )
        return household

    def list_households(self, user: User) -> list[Household]:
        return list(self._households.list_for_user(user.id))

    def get_household(self, user: User, household_id: UUID) -> HouseholdDetails:
        household = self._households.get(household_id)
        if household is None or self._memberships.get(user.id, household_id) is None:
            raise HouseholdNotFoundError(household_id)
        return HouseholdDetails(household=household, members=self._members(household_id))

    def rename_household(self, user: User, household_id: UUID, name: str) -> Household:
        membership = self._require_member(user, household_id)
        if not membership.is_owner:
            raise OwnerRequiredError("rename the household", household_id)
        household = self._households.get(household_id)
        if household is None:
            raise HouseholdNotFoundError(household_id)
        household.rename(name)
        self._households.update(household)
        logger.info("household_renamed", household_id=str(household_id))
        return household

    def _members(self, household_id: UUID) -> list[MemberView]:
        memberships = list(self._memberships.list_by_household(household_id))
        users = {u.id: u for u in self._users.list_by_ids(m.user_id for m in memberships)}
        return [
            MemberView(user=users[m.user_id], membership=m)
            for m in memberships
            if m.user_id in users
        ]

    def _require_member(self, user: User, household_id: UUID) -> Membership:
        membership = self._memberships.get(user.id, household_id)
        if membership is None:
            logger.warning(
                "tenancy_denied", user_id=str(user.id), household_id=str(household_id)
            )
            raise NotAMemberError(household_id)
        return membership

    # -------------------------------------------------------------------------
    # Invitations
    # -------------------------------------------------------------------------

    def invite(self, user: User, household_id: UUID, email: str) -> InvitationView:
        """Invite an email address to a household.

        Raises:
            NotAMemberError: If the caller does not belong to the household
            OwnerRequiredError: If the caller is not its OWNER
            ConflictError: If the address already belongs to a member, or a
                pending invitation for it has not expired yet
        """
        membership = self._require_member(user, household_id)
        if not membership.is_owner:
            raise OwnerRequiredError("send invitations", household_id)

        email = email.strip().lower()
        invitee = self._users.get_by_email(email)
        if invitee is not None and self._memberships.get(invitee.id, household_id):
            raise ConflictError(
                "User is already a member of this household", email=email
            )
        for existing in self._invitations.list_by_household(household_id):
            if existing.email == email and existing.is_pending:
                raise ConflictError("Invitation already sent", email=email)

        invitation = Invitation.create(
            email=email,
            household_id=household_id,
            invited_by_id=user.id,
            expire_days=self._settings.invitation_expire_days,
        )
        self._invitations.add(invitation)

        logger.info(
            "invitation_created",
            invitation_id=str(invitation.id),
            household_id=str(household_id),
        )
        return InvitationView(
            invitation=invitation,
            household=self._require_household(household_id),
            invited_by=user,
        )

    def list_invitations(self, user: User, household_id: UUID) -> list[InvitationView]:
        self._require_member(user, household_id)
        household = self._require_household(household_id)
        invitations = list(self._invitations.list_by_household(household_id))
        inviters = self._users_by_id(i.invited_by_id for i in invitations)
        return [
            InvitationView(i, household, inviters.get(i.invited_by_id))
            for i in invitations
        ]

    def pending_invitations(self, user: User) -> list[InvitationView]:
        """Unexpired PENDING invitations addressed to the user's email."""
        invitations = [i for i in self._invitations.list_by_email(user.email) if i.is_pending]
        inviters = self._users_by_id(i.invited_by_id for i in invitations)
        views = []
        for invitation in invitations:
            household = self._households.get(invitation.household_id)
            if household is not None:
                views.append(
                    InvitationView(
                        invitation, household, inviters.get(invitation.invited_by_id)
                    )
                )
        return views

    def preview_invitation(self, token: str) -> InvitationPreview:
        invitation = self._invitations.get_by_token(token)
        if invitation is None:
            raise InvitationNotFoundError()
        if not invitation.is_pending:
            raise InvalidOperationError("Invitation has expired or already been used")

        inviter = self._users.get(invitation.invited_by_id)
        if inviter is None:
            raise InvitationNotFoundError()
        return InvitationPreview(
            email=invitation.email,
            household=self._require_household(invitation.household_id),
            invited_by=inviter,
            expires_at=invitation.expires_at,
        )

    def accept_invitation(self, user: User, token: str) -> tuple[Household, Membership]:
        """Join a household through an invitation token.

        Checks run in order: unknown token, already accepted, expired, email
        mismatch, existing membership. The membership is created and the
        invitation consumed in one unit of work.
        """
        invitation = self._invitations.get_by_token(token)
        if invitation is None:
            raise InvitationNotFoundError()
        if invitation.status == InvitationStatus.ACCEPTED:
            raise ConflictError("Invitation has already been accepted")
        if invitation.is_expired:
            raise InvalidOperationError("Invitation has expired")
        if not invitation.matches_email(user.email):
            raise ForbiddenError("This invitation is not for your email address")
        if self._memberships.get(user.id, invitation.household_id) is not None:
            raise ConflictError(
                "You are already a member of this household",
                household_id=invitation.household_id,
            )

        household = self._require_household(invitation.household_id)
        membership = Membership(
            user_id=user.id, household_id=household.id, role=Role.MEMBER
        )
        invitation.accept()
        with self._db.transaction():
            self._memberships.add(membership)
            self._invitations.update(invitation)

        logger.info(
            "invitation_accepted",
            invitation_id=str(invitation.id),
            household_id=str(household.id),
            user_id=str(user.id),
        )
        return household, membership

    def _require_household(self, household_id: UUID) -> Household:
        household = self._households.get(household_id)
        if household is None:
            raise HouseholdNotFoundError(household_id)
        return household

    def _users_by_id(self, user_ids) -> dict[UUID, User]:
        return {u.id: u for u in self._users.list_by_ids(set(user_ids))}
