"""API routes for Household Ledger."""

from datetime import date, timedelta
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from household_ledger.api.dependencies import ContainerDep, CurrentUser, Tenant
from household_ledger.api.schemas import (
    AcceptedMembership,
    AccountCreateRequest,
    AccountGroupCreate,
    AccountGroupPatch,
    AccountGroupResponse,
    AccountPatch,
    AccountResponse,
    CategoryCreate,
    CategoryPatch,
    CategoryResponse,
    HealthResponse,
    HouseholdCreate,
    HouseholdDetailResponse,
    HouseholdName,
    HouseholdResponse,
    HouseholdUpdate,
    InvitationAccept,
    InvitationAcceptResponse,
    InvitationCreate,
    InvitationPreviewResponse,
    InvitationResponse,
    LoginRequest,
    MessageResponse,
    MobileLoginResponse,
    OkResponse,
    PasswordChangeRequest,
    ProfileResponse,
    RegisterRequest,
    SignupRequest,
    SignupResponse,
    TransactionCreateRequest,
    TransactionPatch,
    TransactionResponse,
    TransferCreateRequest,
    TransferCreateResponse,
    TransferResponse,
    UserResponse,
    UserSummary,
)
from household_ledger.domain.value_objects import CategoryType, TransactionType
from household_ledger.services.interfaces import TransactionFilter

# Create routers
health_router = APIRouter(tags=["health"])
auth_router = APIRouter(prefix="/auth", tags=["auth"])
mobile_router = APIRouter(prefix="/mobile", tags=["mobile"])
user_router = APIRouter(prefix="/users", tags=["users"])
household_router = APIRouter(prefix="/households", tags=["households"])
invitation_router = APIRouter(prefix="/invitations", tags=["invitations"])
account_group_router = APIRouter(prefix="/account-groups", tags=["account-groups"])
account_router = APIRouter(prefix="/accounts", tags=["accounts"])
category_router = APIRouter(prefix="/categories", tags=["categories"])
transaction_router = APIRouter(prefix="/transactions", tags=["transactions"])
transfer_router = APIRouter(prefix="/transfers", tags=["transfers"])


# Health endpoint
@health_router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy")


# Auth endpoints
@auth_router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(payload: RegisterRequest, container: ContainerDep) -> UserResponse:
    """Register a new user."""
    user = container.auth_service.register_user(
        payload.email, payload.password, payload.name
    )
    return UserResponse.from_domain(user)


@auth_router.post("/login", response_model=UserResponse)
def login(
    payload: LoginRequest, response: Response, container: ContainerDep
) -> UserResponse:
    """Web login. Sets the HTTP-only session cookie."""
    settings = container.settings
    user, token = container.auth_service.login(payload.email, payload.password)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=int(timedelta(days=settings.session_token_expire_days).total_seconds()),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return UserResponse.from_domain(user)


@auth_router.post("/logout", response_model=MessageResponse)
def logout(response: Response, container: ContainerDep) -> MessageResponse:
    """Clear the session cookie."""
    response.delete_cookie(container.settings.session_cookie_name)
    return MessageResponse(message="Logged out")


@auth_router.get("/me", response_model=ProfileResponse)
def me(user: CurrentUser, container: ContainerDep) -> ProfileResponse:
    """The authenticated user and their household memberships."""
    return ProfileResponse.from_domain(container.auth_service.profile(user))


# Mobile endpoints
@mobile_router.post("/login", response_model=MobileLoginResponse)
def mobile_login(payload: LoginRequest, container: ContainerDep) -> MobileLoginResponse:
    """Mobile login. Returns a bearer token."""
    user, token = container.auth_service.login_mobile(payload.email, payload.password)
    return MobileLoginResponse(token=token, user=UserResponse.from_domain(user))


@mobile_router.get("/profile", response_model=ProfileResponse)
def mobile_profile(user: CurrentUser, container: ContainerDep) -> ProfileResponse:
    return ProfileResponse.from_domain(container.auth_service.profile(user))


@mobile_router.post("/password/change", response_model=MessageResponse)
def change_password(
    payload: PasswordChangeRequest, user: CurrentUser, container: ContainerDep
) -> MessageResponse:
    container.auth_service.change_password(
        user, payload.old_password, payload.new_password
    )
    return MessageResponse(message="Password has changed")


# User endpoints
@user_router.get("", response_model=list[UserResponse])
def list_users(
    user: CurrentUser,
    container: ContainerDep,
    exclude_household_id: Annotated[UUID | None, Query(alias="excludeHouseholdId")] = None,
) -> list[UserResponse]:
    """Other users to invite, optionally leaving out one household's members."""
    users = container.auth_service.list_users(user, exclude_household_id)
    return [UserResponse.from_domain(u) for u in users]


@user_router.post(
    "",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
)
def sign_up(payload: SignupRequest, container: ContainerDep) -> SignupResponse:
    """Register a user and create their first household."""
    user, household = container.auth_service.sign_up(
        payload.email, payload.password, payload.name, payload.household_name
    )
    return SignupResponse(
        user=UserResponse.from_domain(user),
        household=HouseholdResponse.from_domain(household),
    )


# Household endpoints
@household_router.get("", response_model=list[HouseholdResponse])
def list_households(user: CurrentUser, container: ContainerDep) -> list[HouseholdResponse]:
    """List households the caller belongs to."""
    households = container.household_service.list_households(user)
    return [HouseholdResponse.from_domain(h) for h in households]


@household_router.post(
    "",
    response_model=HouseholdResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_household(
    payload: HouseholdCreate, user: CurrentUser, container: ContainerDep
) -> HouseholdResponse:
    """Create a household with the caller as OWNER."""
    household = container.household_service.create_household(user, payload.name)
    return HouseholdResponse.from_domain(household)


@household_router.get("/{household_id}", response_model=HouseholdDetailResponse)
def get_household(
    household_id: UUID, user: CurrentUser, container: ContainerDep
) -> HouseholdDetailResponse:
    details = container.household_service.get_household(user, household_id)
    return HouseholdDetailResponse.from_details(details)


@household_router.patch("/{household_id}", response_model=HouseholdResponse)
def rename_household(
    household_id: UUID,
    payload: HouseholdUpdate,
    user: CurrentUser,
    container: ContainerDep,
) -> HouseholdResponse:
    household = container.household_service.rename_household(
        user, household_id, payload.name
    )
    return HouseholdResponse.from_domain(household)


# Invitation endpoints
@invitation_router.post(
    "",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_invitation(
    payload: InvitationCreate, user: CurrentUser, container: ContainerDep
) -> InvitationResponse:
    """Invite an email address to a household. OWNER only."""
    view = container.household_service.invite(user, payload.household_id, payload.email)
    return InvitationResponse.from_view(view)


@invitation_router.get("", response_model=list[InvitationResponse])
def list_invitations(
    user: CurrentUser,
    container: ContainerDep,
    household_id: Annotated[UUID, Query(alias="householdId")],
) -> list[InvitationResponse]:
    """List a household's invitations. Members only."""
    views = container.household_service.list_invitations(user, household_id)
    return [InvitationResponse.from_view(v) for v in views]


@invitation_router.get("/pending", response_model=list[InvitationResponse])
def pending_invitations(user: CurrentUser, container: ContainerDep) -> list[InvitationResponse]:
    """Open invitations addressed to the caller's email."""
    views = container.household_service.pending_invitations(user)
    return [InvitationResponse.from_view(v) for v in views]


@invitation_router.get("/accept", response_model=InvitationPreviewResponse)
def preview_invitation(
    token: Annotated[str, Query(min_length=1)], container: ContainerDep
) -> InvitationPreviewResponse:
    """Show what an invitation token is for. No authentication required."""
    preview = container.household_service.preview_invitation(token)
    return InvitationPreviewResponse(
        email=preview.email,
        household=HouseholdName(id=preview.household.id, name=preview.household.name),
        invited_by=UserSummary.from_domain(preview.invited_by),
        expires_at=preview.expires_at,
    )


@invitation_router.post("/accept", response_model=InvitationAcceptResponse)
def accept_invitation(
    payload: InvitationAccept, user: CurrentUser, container: ContainerDep
) -> InvitationAcceptResponse:
    household, membership = container.household_service.accept_invitation(
        user, payload.token
    )
    return InvitationAcceptResponse(
        message="Successfully joined household",
        household=HouseholdName(id=household.id, name=household.name),
        membership=AcceptedMembership(
            role=membership.role, created_at=membership.created_at
        ),
    )


# Account group endpoints
@account_group_router.get("", response_model=list[AccountGroupResponse])
def list_account_groups(ctx: Tenant, container: ContainerDep) -> list[AccountGroupResponse]:
    """List the household's account groups with the accounts the caller can see."""
    groups = container.account_group_service.list_groups(ctx)
    return [AccountGroupResponse.from_domain(g.group, g.accounts) for g in groups]


@account_group_router.post(
    "",
    response_model=AccountGroupResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_account_group(
    payload: AccountGroupCreate, ctx: Tenant, container: ContainerDep
) -> AccountGroupResponse:
    group = container.account_group_service.create_group(ctx, payload.name, payload.kind)
    return AccountGroupResponse.from_domain(group)


@account_group_router.get("/{group_id}", response_model=AccountGroupResponse)
def get_account_group(
    group_id: UUID, ctx: Tenant, container: ContainerDep
) -> AccountGroupResponse:
    view = container.account_group_service.get_group(ctx, group_id)
    return AccountGroupResponse.from_domain(view.group, view.accounts)


@account_group_router.patch("/{group_id}", response_model=AccountGroupResponse)
def update_account_group(
    group_id: UUID, payload: AccountGroupPatch, ctx: Tenant, container: ContainerDep
) -> AccountGroupResponse:
    group = container.account_group_service.update_group(
        ctx, group_id, payload.to_command()
    )
    return AccountGroupResponse.from_domain(group)


@account_group_router.delete("/{group_id}", response_model=OkResponse)
def delete_account_group(group_id: UUID, ctx: Tenant, container: ContainerDep) -> OkResponse:
    """Delete a group with its accounts and their transactions."""
    container.account_group_service.delete_group(ctx, group_id)
    return OkResponse()


# Account endpoints
@account_router.get("", response_model=list[AccountResponse])
def list_accounts(ctx: Tenant, container: ContainerDep) -> list[AccountResponse]:
    """List visible accounts with derived balances."""
    return [AccountResponse.from_view(a) for a in container.account_service.list_accounts(ctx)]


@account_router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_account(
    payload: AccountCreateRequest, ctx: Tenant, container: ContainerDep
) -> AccountResponse:
    view = container.account_service.create_account(ctx, payload.to_command())
    return AccountResponse.from_view(view)


@account_router.get("/{account_id}", response_model=AccountResponse)
def get_account(account_id: UUID, ctx: Tenant, container: ContainerDep) -> AccountResponse:
    return AccountResponse.from_view(container.account_service.get_account(ctx, account_id))


@account_router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: UUID, payload: AccountPatch, ctx: Tenant, container: ContainerDep
) -> AccountResponse:
    view = container.account_service.update_account(ctx, account_id, payload.to_command())
    return AccountResponse.from_view(view)


@account_router.delete("/{account_id}", response_model=OkResponse)
def delete_account(account_id: UUID, ctx: Tenant, container: ContainerDep) -> OkResponse:
    container.account_service.delete_account(ctx, account_id)
    return OkResponse()


# Category endpoints
@category_router.get("", response_model=list[CategoryResponse])
def list_categories(
    ctx: Tenant,
    container: ContainerDep,
    category_type: Annotated[CategoryType | None, Query(alias="type")] = None,
) -> list[CategoryResponse]:
    """List categories ordered by type, then name."""
    categories = container.category_service.list_categories(ctx, category_type)
    return [CategoryResponse.from_domain(c) for c in categories]


@category_router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    payload: CategoryCreate, ctx: Tenant, container: ContainerDep
) -> CategoryResponse:
    category = container.category_service.create_category(ctx, payload.name, payload.type)
    return CategoryResponse.from_domain(category)


@category_router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: UUID, ctx: Tenant, container: ContainerDep) -> CategoryResponse:
    return CategoryResponse.from_domain(container.category_service.get_category(ctx, category_id))


@category_router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: UUID, payload: CategoryPatch, ctx: Tenant, container: ContainerDep
) -> CategoryResponse:
    category = container.category_service.update_category(
        ctx, category_id, payload.to_command()
    )
    return CategoryResponse.from_domain(category)


@category_router.delete("/{category_id}", response_model=OkResponse)
def delete_category(category_id: UUID, ctx: Tenant, container: ContainerDep) -> OkResponse:
    container.category_service.delete_category(ctx, category_id)
    return OkResponse()


# Transaction endpoints
@transaction_router.get("", response_model=list[TransactionResponse])
def list_transactions(
    ctx: Tenant,
    container: ContainerDep,
    account_id: Annotated[UUID | None, Query(alias="accountId")] = None,
    pocket_id: Annotated[UUID | None, Query(alias="pocketId")] = None,
    category_id: Annotated[UUID | None, Query(alias="categoryId")] = None,
    txn_type: Annotated[TransactionType | None, Query(alias="type")] = None,
    date_from: Annotated[date | None, Query(alias="dateFrom")] = None,
    date_to: Annotated[date | None, Query(alias="dateTo")] = None,
    q: Annotated[str | None, Query(max_length=200)] = None,
) -> list[TransactionResponse]:
    """List visible transactions, newest first.

    ``pocketId`` is accepted as the legacy name for ``accountId``.
    """
    filters = TransactionFilter(
        account_id=account_id or pocket_id,
        category_id=category_id,
        type=txn_type,
        date_from=date_from,
        date_to=date_to,
        q=q,
    )
    transactions = container.transaction_service.list_transactions(ctx, filters)
    return [TransactionResponse.from_domain(t) for t in transactions]


@transaction_router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_transaction(
    payload: TransactionCreateRequest, ctx: Tenant, container: ContainerDep
) -> TransactionResponse:
    txn = container.transaction_service.create_transaction(ctx, payload.to_command())
    return TransactionResponse.from_domain(txn)


@transaction_router.get("/{txn_id}", response_model=TransactionResponse)
def get_transaction(txn_id: UUID, ctx: Tenant, container: ContainerDep) -> TransactionResponse:
    return TransactionResponse.from_domain(
        container.transaction_service.get_transaction(ctx, txn_id)
    )


@transaction_router.patch("/{txn_id}", response_model=TransactionResponse)
def update_transaction(
    txn_id: UUID, payload: TransactionPatch, ctx: Tenant, container: ContainerDep
) -> TransactionResponse:
    txn = container.transaction_service.update_transaction(
        ctx, txn_id, payload.to_command()
    )
    return TransactionResponse.from_domain(txn)


@transaction_router.delete("/{txn_id}", response_model=OkResponse)
def delete_transaction(txn_id: UUID, ctx: Tenant, container: ContainerDep) -> OkResponse:
    """Delete a transaction. A transfer leg takes its whole transfer with it."""
    container.transaction_service.delete_transaction(ctx, txn_id)
    return OkResponse()


# Transfer endpoints
@transfer_router.post(
    "",
    response_model=TransferCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_transfer(
    payload: TransferCreateRequest, ctx: Tenant, container: ContainerDep
) -> TransferCreateResponse:
    """Move money between two accounts as one atomic pair of transactions."""
    details = container.transfer_service.create_transfer(ctx, payload.to_command())
    return TransferCreateResponse.from_details(details)


@transfer_router.get("/{group_id}", response_model=TransferResponse)
def get_transfer(group_id: UUID, ctx: Tenant, container: ContainerDep) -> TransferResponse:
    return TransferResponse.from_details(container.transfer_service.get_transfer(ctx, group_id))


@transfer_router.delete("/{group_id}", response_model=OkResponse)
def delete_transfer(group_id: UUID, ctx: Tenant, container: ContainerDep) -> OkResponse:
    container.transfer_service.delete_transfer(ctx, group_id)
    return OkResponse()
