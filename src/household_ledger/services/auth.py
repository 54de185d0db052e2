"""Authentication service.

Provides:
- User registration, sign-up with a first household and password login
- Password change and user lookup for invitations
- Signed session (web cookie) and access (mobile bearer) tokens
- Principal resolution over an ordered list of credential resolvers
"""

import hashlib
import secrets
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt

from household_ledger.config import Settings, get_settings
from household_ledger.domain.auth import TokenPayload, TokenType, User
from household_ledger.domain.households import Household, Membership
from household_ledger.domain.value_objects import Role
from household_ledger.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    InvalidOperationError,
    UnauthenticatedError,
)
from household_ledger.logging_config import get_logger
from household_ledger.repositories.interfaces import (
    HouseholdRepository,
    MembershipRepository,
    UserRepository,
)
from household_ledger.repositories.sqlite import SQLiteDatabase
from household_ledger.services.interfaces import Credentials, Profile

logger = get_logger(__name__)


class PasswordHasher:
    """Secure password hashing using PBKDF2."""

    ALGORITHM = "pbkdf2_sha256"
    ITERATIONS = 600_000  # OWASP 2023 recommendation
    SALT_LENGTH = 32

    def __init__(self, iterations: int = ITERATIONS) -> None:
        self.iterations = iterations

    def hash(self, password: str) -> str:
        """Hash a password securely.

        Returns:
            Hash string in format: algorithm$iterations$salt$hash
        """
        salt = secrets.token_hex(self.SALT_LENGTH)
        hash_bytes = hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            salt.encode("utf-8"),
            self.iterations,
        )
        return f"{self.ALGORITHM}${self.iterations}${salt}${hash_bytes.hex()}"

    def verify(self, password: str, hash_string: str) -> bool:
        """Verify a password against a stored hash."""
        try:
            algorithm, iterations, salt, stored_hash = hash_string.split("$")
            if algorithm != self.ALGORITHM:
                return False

            hash_bytes = hashlib.pbkdf2_hmac(
                "sha256",
                password.encode("utf-8"),
                salt.encode("utf-8"),
                int(iterations),
            )
            # Constant-time comparison to prevent timing attacks
            return secrets.compare_digest(hash_bytes.hex(), stored_hash)
        except (ValueError, AttributeError):
            return False


class TokenService:
    """HS256 JWT issuance and verification with PyJWT."""

    ALGORITHM = "HS256"

    def __init__(self, secret_key: str, leeway_seconds: int = 0) -> None:
        self.secret_key = secret_key
        self.leeway_seconds = leeway_seconds

    def issue(self, user_id: UUID, token_type: TokenType, expires_in: timedelta) -> str:
        now = datetime.now(UTC)
        claims = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + expires_in,
            "type": token_type.value,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.ALGORITHM)

    def decode(self, token: str, expected_type: TokenType) -> TokenPayload | None:
        """Verify signature, expiry and token type. Returns None when any check fails."""
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                options={"require": ["sub", "exp", "iat"]},
                leeway=self.leeway_seconds,
            )
        except jwt.InvalidTokenError as exc:
            logger.debug("token_rejected", reason=type(exc).__name__)
            return None

        if claims.get("type") != expected_type.value:
            return None
        try:
            subject = UUID(claims["sub"])
        except (ValueError, TypeError):
            return None

        return TokenPayload(
            sub=subject,
            exp=datetime.fromtimestamp(claims["exp"], UTC),
            iat=datetime.fromtimestamp(claims["iat"], UTC),
            type=expected_type,
        )


# =============================================================================
# Credential resolvers
# =============================================================================


class CredentialResolver(ABC):
    """Maps raw credentials to a user id, or None if this resolver cannot."""

    name: str = "credential"

    @abstractmethod
    def resolve(self, credentials: Credentials) -> UUID | None:
        pass


class _SignedTokenResolver(CredentialResolver):
    token_type: TokenType

    def __init__(self, tokens: TokenService, users: UserRepository) -> None:
        self._tokens = tokens
        self._users = users

    @abstractmethod
    def _token(self, credentials: Credentials) -> str | None:
        pass

    def resolve(self, credentials: Credentials) -> UUID | None:
        token = self._token(credentials)
        if not token:
            return None
        payload = self._tokens.decode(token, self.token_type)
        if payload is None:
            return None
        if self._users.get(payload.sub) is None:
            return None
        return payload.sub


class SessionCookieResolver(_SignedTokenResolver):
    """Resolves the web session cookie."""

    name = "session"
    token_type = TokenType.SESSION

    def _token(self, credentials: Credentials) -> str | None:
        return credentials.session_token


class BearerTokenResolver(_SignedTokenResolver):
    """Resolves an `Authorization: Bearer` mobile access token."""

    name = "bearer"
    token_type = TokenType.ACCESS

    def _token(self, credentials: Credentials) -> str | None:
        return credentials.bearer_token


# =============================================================================
# AuthService
# =============================================================================


class AuthService:
    """User registration, login and principal resolution."""

    def __init__(
        self,
        database: SQLiteDatabase,
        users: UserRepository,
        memberships: MembershipRepository,
        households: HouseholdRepository,
        tokens: TokenService,
        resolvers: Sequence[CredentialResolver],
        password_hasher: PasswordHasher | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._db = database
        self._users = users
        self._memberships = memberships
        self._households = households
        self._tokens = tokens
        self._resolvers = tuple(resolvers)
        self._hasher = password_hasher or PasswordHasher()
        self._settings = settings or get_settings()

    @property
    def resolvers(self) -> tuple[CredentialResolver, ...]:
        return self._resolvers

    def register_user(self, email: str, password: str, name: str | None = None) -> User:
        """Register a new user.

        Raises:
            InvalidOperationError: If the email is malformed or the password too short
            ConflictError: If the email is already registered
        """
        email = email.strip().lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise InvalidOperationError("Invalid email format", email=email)

        min_length = self._settings.password_min_length
        if len(password) < min_length:
            raise InvalidOperationError(
                f"Password must be at least {min_length} characters"
            )

        if self._users.get_by_email(email) is not None:
            raise ConflictError("User with this email already exists", email=email)

        user = User(
            email=email,
            name=name,
            password_hash=self._hasher.hash(password),
        )
        self._users.add(user)

        logger.info("user_registered", user_id=str(user.id))
        return user

    def sign_up(
        self,
        email: str,
        password: str,
        name: str | None,
        household_name: str,
    ) -> tuple[User, Household]:
        """Register a user together with a first household they own.

        Either both are created or neither is.
        """
        with self._db.transaction():
            user = self.register_user(email, password, name)
            household = Household(name=household_name)
            self._households.add(household)
            self._memberships.add(
                Membership(user_id=user.id, household_id=household.id, role=Role.OWNER)
            )

        logger.info(
            "user_signed_up", user_id=str(user.id), household_id=str(household.id)
        )
        return user, household

    def change_password(self, user: User, old_password: str, new_password: str) -> None:
        """Replace the user's password after checking the current one.

        Raises:
            InvalidOperationError: If the new password is too short or the old one is wrong
        """
        min_length = self._settings.password_min_length
        if len(new_password) < min_length:
            raise InvalidOperationError(
                f"New password must be at least {min_length} characters"
            )
        if not user.password_hash:
            raise InvalidOperationError("Account cannot change password")
        if not self._hasher.verify(old_password, user.password_hash):
            logger.warning("password_change_rejected", user_id=str(user.id))
            raise InvalidOperationError("Old password is incorrect")

        user.password_hash = self._hasher.hash(new_password)
        user.updated_at = datetime.now(UTC)
        self._users.update(user)
        logger.info("password_changed", user_id=str(user.id))

    def list_users(
        self, user: User, exclude_household_id: UUID | None = None
    ) -> list[User]:
        """Other users, newest first, for picking whom to invite.

        With exclude_household_id, members of that household are left out.
        """
        return list(self._users.list_others(user.id, exclude_household_id))

    def authenticate(self, email: str, password: str) -> User:
        """Check an email/password pair.

        Raises:
            InvalidCredentialsError: If either is wrong; the two cases are not distinguished
        """
        user = self._users.get_by_email(email)
        if user is None or not self._hasher.verify(password, user.password_hash or ""):
            logger.warning("login_failed")
            raise InvalidCredentialsError()
        return user

    def login(self, email: str, password: str) -> tuple[User, str]:
        """Web login. Returns the user and a session token for the cookie."""
        user = self.authenticate(email, password)
        token = self._tokens.issue(
            user.id,
            TokenType.SESSION,
            timedelta(days=self._settings.session_token_expire_days),
        )
        logger.info("user_authenticated", user_id=str(user.id), channel="web")
        return user, token

    def login_mobile(self, email: str, password: str) -> tuple[User, str]:
        """Mobile login. Returns the user and a bearer access token."""
        user = self.authenticate(email, password)
        token = self._tokens.issue(
            user.id,
            TokenType.ACCESS,
            timedelta(days=self._settings.mobile_token_expire_days),
        )
        logger.info("user_authenticated", user_id=str(user.id), channel="mobile")
        return user, token

    def resolve_principal(self, credentials: Credentials) -> UUID:
        """Return the caller's user id from the first resolver that recognises them.

        Raises:
            UnauthenticatedError: If no resolver yields a user
        """
        for resolver in self._resolvers:
            user_id = resolver.resolve(credentials)
            if user_id is not None:
                return user_id
        raise UnauthenticatedError()

    def current_user(self, credentials: Credentials) -> User:
        user_id = self.resolve_principal(credentials)
        user = self._users.get(user_id)
        if user is None:
            raise UnauthenticatedError()
        return user

    def profile(self, user: User) -> Profile:
        memberships = []
        for membership in self._memberships.list_by_user(user.id):
            household = self._households.get(membership.household_id)
            if household is not None:
                memberships.append((membership, household))
        return Profile(user=user, memberships=memberships)
