"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from uuid import UUID

from household_ledger.domain.auth import User
from household_ledger.domain.entities import Account, AccountGroup, Category
from household_ledger.domain.households import Household, Invitation, Membership
from household_ledger.domain.transactions import Transaction, TransferGroup
from household_ledger.domain.value_objects import (
    AccountGroupKind,
    AccountScope,
    CategoryType,
    InvitationStatus,
    Role,
    TransactionType,
)
from household_ledger.exceptions import ConflictError
from household_ledger.repositories.interfaces import (
    AccountGroupRepository,
    AccountRepository,
    CategoryRepository,
    HouseholdRepository,
    InvitationRepository,
    MembershipRepository,
    TransactionQuery,
    TransactionRepository,
    TransferGroupRepository,
    UserRepository,
)

SCHEMA = """
    -- Users table
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        name TEXT,
        password_hash TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    -- Households table
    CREATE TABLE IF NOT EXISTS households (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_households_name ON households(name);

    -- Memberships table
    CREATE TABLE IF NOT EXISTS memberships (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        household_id TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'MEMBER',
        created_at TEXT NOT NULL,
        UNIQUE(user_id, household_id),
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
        FOREIGN KEY (household_id) REFERENCES households(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS idx_memberships_household ON memberships(household_id);

    -- Invitations table
    CREATE TABLE IF NOT EXISTS invitations (
        id TEXT PRIMARY KEY,
        email TEXT NOT NULL,
        household_id TEXT NOT NULL,
        invited_by_id TEXT NOT NULL,
        token TEXT NOT NULL UNIQUE,
        status TEXT NOT NULL DEFAULT 'PENDING',
        expires_at TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (household_id) REFERENCES households(id) ON DELETE CASCADE,
        FOREIGN KEY (invited_by_id) REFERENCES users(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS idx_invitations_email ON invitations(email);
    CREATE INDEX IF NOT EXISTS idx_invitations_household ON invitations(household_id);

    -- Account groups table
    CREATE TABLE IF NOT EXISTS account_groups (
        id TEXT PRIMARY KEY,
        household_id TEXT NOT NULL,
        name TEXT NOT NULL,
        kind TEXT NOT NULL DEFAULT 'CASH',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE(household_id, name),
        FOREIGN KEY (household_id) REFERENCES households(id) ON DELETE CASCADE
    );

    -- Accounts table
    CREATE TABLE IF NOT EXISTS accounts (
        id TEXT PRIMARY KEY,
        group_id TEXT NOT NULL,
        name TEXT NOT NULL,
        currency TEXT NOT NULL DEFAULT 'IDR',
        starting_balance TEXT NOT NULL DEFAULT '0',
        is_archived INTEGER NOT NULL DEFAULT 0,
        scope TEXT NOT NULL DEFAULT 'HOUSEHOLD',
        owner_user_id TEXT,
        created_by_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE(group_id, name),
        FOREIGN KEY (group_id) REFERENCES account_groups(id) ON DELETE CASCADE,
        FOREIGN KEY (owner_user_id) REFERENCES users(id),
        FOREIGN KEY (created_by_id) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS idx_accounts_group ON accounts(group_id);
    CREATE INDEX IF NOT EXISTS idx_accounts_owner ON accounts(owner_user_id);

    -- Categories table
    CREATE TABLE IF NOT EXISTS categories (
        id TEXT PRIMARY KEY,
        household_id TEXT NOT NULL,
        name TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'EXPENSE',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE(household_id, name),
        FOREIGN KEY (household_id) REFERENCES households(id) ON DELETE CASCADE
    );

    -- Transfer groups table
    CREATE TABLE IF NOT EXISTS transfer_groups (
        id TEXT PRIMARY KEY,
        household_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (household_id) REFERENCES households(id) ON DELETE CASCADE
    );

    -- Transactions table. Amounts are stored as unsigned decimal text.
    CREATE TABLE IF NOT EXISTS transactions (
        id TEXT PRIMARY KEY,
        account_id TEXT NOT NULL,
        category_id TEXT NOT NULL,
        magnitude TEXT NOT NULL,
        type TEXT NOT NULL,
        description TEXT,
        transaction_date TEXT NOT NULL,
        transfer_group_id TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (account_id) REFERENCES accounts(id) ON DELETE CASCADE,
        FOREIGN KEY (category_id) REFERENCES categories(id),
        FOREIGN KEY (transfer_group_id) REFERENCES transfer_groups(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS idx_transactions_account ON transactions(account_id);
    CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(transaction_date);
    CREATE INDEX IF NOT EXISTS idx_transactions_transfer_group ON transactions(transfer_group_id);
"""


class SQLiteDatabase:
    """SQLite database connection manager.

    The connection runs in autocommit mode and is shared by threads. Writes
    go through transaction(), which opens BEGIN IMMEDIATE at the outermost
    level and joins the open transaction when nested. Queries go through
    read(), which waits for another thread's open transaction.
    """

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._depth = 0

    @property
    def path(self) -> str:
        return self._path

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path,
                check_same_thread=self._check_same_thread,
                isolation_level=None,
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        with self._lock:
            self.get_connection().executescript(SCHEMA)

    @contextmanager
    def read(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection for queries.

        Holds the same lock as transaction(), so a query waits for an open
        unit of work on another thread to finish and never sees it half
        written.
        """
        with self._lock:
            yield self.get_connection()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed writes as one all-or-nothing unit of work.

        Integrity violations surface as ConflictError at every nesting
        level; only the outermost level commits or rolls back.
        """
        with self._lock:
            conn = self.get_connection()
            outermost = self._depth == 0
            if outermost:
                conn.execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield conn
            except sqlite3.IntegrityError as exc:
                if outermost:
                    self._rollback(conn)
                raise _conflict_from(exc) from exc
            except BaseException:
                if outermost:
                    self._rollback(conn)
                raise
            else:
                if outermost:
                    conn.execute("COMMIT")
            finally:
                self._depth -= 1

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


def _conflict_from(exc: sqlite3.IntegrityError) -> ConflictError:
    detail = str(exc)
    if detail.startswith("FOREIGN KEY"):
        return ConflictError("Record is still referenced by other records")
    return ConflictError("Record violates a uniqueness rule", constraint=detail)


def _uuid_or_none(value: str | None) -> UUID | None:
    return UUID(value) if value else None


class SQLiteUserRepository(UserRepository):
    """SQLite implementation of UserRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, user: User) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO users (id, email, name, password_hash, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(user.id),
                    user.email,
                    user.name,
                    user.password_hash,
                    user.created_at.isoformat(),
                    user.updated_at.isoformat(),
                ),
            )

    def get(self, user_id: UUID) -> User | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE id = ?", (str(user_id),)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_user(row)

    def get_by_email(self, email: str) -> User | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_user(row)

    def list_by_ids(self, user_ids: Iterable[UUID]) -> Iterable[User]:
        ids = [str(user_id) for user_id in user_ids]
        if not ids:
            return []
        with self._db.read() as conn:
            placeholders = ", ".join("?" for _ in ids)
            rows = conn.execute(
                f"SELECT * FROM users WHERE id IN ({placeholders})", ids
            ).fetchall()
            return [self._row_to_user(row) for row in rows]

    def list_others(
        self,
        exclude_user_id: UUID,
        exclude_household_id: UUID | None = None,
        limit: int = 100,
    ) -> Iterable[User]:
        sql = "SELECT * FROM users WHERE id != ?"
        params: list[object] = [str(exclude_user_id)]
        if exclude_household_id is not None:
            sql += " AND id NOT IN (SELECT user_id FROM memberships WHERE household_id = ?)"
            params.append(str(exclude_household_id))
        sql += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)
        with self._db.read() as conn:
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_user(row) for row in rows]

    def update(self, user: User) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                UPDATE users SET
                    email = ?,
                    name = ?,
                    password_hash = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    user.email,
                    user.name,
                    user.password_hash,
                    user.updated_at.isoformat(),
                    str(user.id),
                ),
            )

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            email=row["email"],
            id=UUID(row["id"]),
            name=row["name"],
            password_hash=row["password_hash"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteHouseholdRepository(HouseholdRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, household: Household) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO households (id, name, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    str(household.id),
                    household.name,
                    household.created_at.isoformat(),
                    household.updated_at.isoformat(),
                ),
            )

    def get(self, household_id: UUID) -> Household | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM households WHERE id = ?", (str(household_id),)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_household(row)

    def list_for_user(self, user_id: UUID) -> Iterable[Household]:
        with self._db.read() as conn:
            rows = conn.execute(
                """
                SELECT h.* FROM households h
                JOIN memberships m ON m.household_id = h.id
                WHERE m.user_id = ?
                ORDER BY h.created_at
                """,
                (str(user_id),),
            ).fetchall()
            return [self._row_to_household(row) for row in rows]

    def update(self, household: Household) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                "UPDATE households SET name = ?, updated_at = ? WHERE id = ?",
                (
                    household.name,
                    household.updated_at.isoformat(),
                    str(household.id),
                ),
            )

    def _row_to_household(self, row: sqlite3.Row) -> Household:
        return Household(
            name=row["name"],
            id=UUID(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteMembershipRepository(MembershipRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, membership: Membership) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO memberships (id, user_id, household_id, role, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(membership.id),
                    str(membership.user_id),
                    str(membership.household_id),
                    membership.role.value,
                    membership.created_at.isoformat(),
                ),
            )

    def get(self, user_id: UUID, household_id: UUID) -> Membership | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM memberships WHERE user_id = ? AND household_id = ?",
                (str(user_id), str(household_id)),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_membership(row)

    def list_by_household(self, household_id: UUID) -> Iterable[Membership]:
        with self._db.read() as conn:
            rows = conn.execute(
                "SELECT * FROM memberships WHERE household_id = ? ORDER BY created_at",
                (str(household_id),),
            ).fetchall()
            return [self._row_to_membership(row) for row in rows]

    def list_by_user(self, user_id: UUID) -> Iterable[Membership]:
        with self._db.read() as conn:
            rows = conn.execute(
                "SELECT * FROM memberships WHERE user_id = ? ORDER BY created_at",
                (str(user_id),),
            ).fetchall()
            return [self._row_to_membership(row) for row in rows]

    def _row_to_membership(self, row: sqlite3.Row) -> Membership:
        return Membership(
            user_id=UUID(row["user_id"]),
            household_id=UUID(row["household_id"]),
            role=Role(row["role"]),
            id=UUID(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class SQLiteInvitationRepository(InvitationRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, invitation: Invitation) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO invitations (id, email, household_id, invited_by_id, token,
                                         status, expires_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(invitation.id),
                    invitation.email,
                    str(invitation.household_id),
                    str(invitation.invited_by_id),
                    invitation.token,
                    invitation.status.value,
                    invitation.expires_at.isoformat(),
                    invitation.created_at.isoformat(),
                ),
            )

    def get_by_token(self, token: str) -> Invitation | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM invitations WHERE token = ?", (token,)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_invitation(row)

    def list_by_household(self, household_id: UUID) -> Iterable[Invitation]:
        with self._db.read() as conn:
            rows = conn.execute(
                "SELECT * FROM invitations WHERE household_id = ? ORDER BY created_at DESC",
                (str(household_id),),
            ).fetchall()
            return [self._row_to_invitation(row) for row in rows]

    def list_by_email(self, email: str) -> Iterable[Invitation]:
        with self._db.read() as conn:
            rows = conn.execute(
                "SELECT * FROM invitations WHERE email = ? ORDER BY created_at DESC",
                (email.strip().lower(),),
            ).fetchall()
            return [self._row_to_invitation(row) for row in rows]

    def update(self, invitation: Invitation) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                "UPDATE invitations SET status = ?, expires_at = ? WHERE id = ?",
                (
                    invitation.status.value,
                    invitation.expires_at.isoformat(),
                    str(invitation.id),
                ),
            )

    def _row_to_invitation(self, row: sqlite3.Row) -> Invitation:
        return Invitation(
            email=row["email"],
            household_id=UUID(row["household_id"]),
            invited_by_id=UUID(row["invited_by_id"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
            token=row["token"],
            status=InvitationStatus(row["status"]),
            id=UUID(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


def _delete_transfer_groups_touching(
    conn: sqlite3.Connection, account_filter: str, params: tuple[str, ...]
) -> None:
    # Removing one leg alone would leave a half transfer behind.
    conn.execute(
        f"""
        DELETE FROM transfer_groups WHERE id IN (
            SELECT transfer_group_id FROM transactions
            WHERE transfer_group_id IS NOT NULL AND account_id IN ({account_filter})
        )
        """,
        params,
    )


class SQLiteAccountGroupRepository(AccountGroupRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, group: AccountGroup) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO account_groups (id, household_id, name, kind, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(group.id),
                    str(group.household_id),
                    group.name,
                    group.kind.value,
                    group.created_at.isoformat(),
                    group.updated_at.isoformat(),
                ),
            )

    def get(self, group_id: UUID) -> AccountGroup | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM account_groups WHERE id = ?", (str(group_id),)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_group(row)

    def get_by_name(self, household_id: UUID, name: str) -> AccountGroup | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM account_groups WHERE household_id = ? AND name = ?",
                (str(household_id), name),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_group(row)

    def list_by_household(self, household_id: UUID) -> Iterable[AccountGroup]:
        with self._db.read() as conn:
            rows = conn.execute(
                "SELECT * FROM account_groups WHERE household_id = ? ORDER BY created_at",
                (str(household_id),),
            ).fetchall()
            return [self._row_to_group(row) for row in rows]

    def update(self, group: AccountGroup) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                "UPDATE account_groups SET name = ?, kind = ?, updated_at = ? WHERE id = ?",
                (
                    group.name,
                    group.kind.value,
                    group.updated_at.isoformat(),
                    str(group.id),
                ),
            )

    def delete(self, group_id: UUID) -> None:
        with self._db.transaction() as conn:
            _delete_transfer_groups_touching(
                conn, "SELECT id FROM accounts WHERE group_id = ?", (str(group_id),)
            )
            conn.execute("DELETE FROM account_groups WHERE id = ?", (str(group_id),))

    def _row_to_group(self, row: sqlite3.Row) -> AccountGroup:
        return AccountGroup(
            name=row["name"],
            household_id=UUID(row["household_id"]),
            id=UUID(row["id"]),
            kind=AccountGroupKind(row["kind"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteAccountRepository(AccountRepository):
    """SQLite implementation of AccountRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, account: Account) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO accounts (id, group_id, name, currency, starting_balance, is_archived,
                                      scope, owner_user_id, created_by_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(account.id),
                    str(account.group_id),
                    account.name,
                    account.currency,
                    str(account.starting_balance),
                    1 if account.is_archived else 0,
                    account.scope.value,
                    str(account.owner_user_id) if account.owner_user_id else None,
                    str(account.created_by_id),
                    account.created_at.isoformat(),
                    account.updated_at.isoformat(),
                ),
            )

    def get(self, account_id: UUID) -> Account | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE id = ?", (str(account_id),)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_account(row)

    def get_for_household(
        self, account_id: UUID, household_id: UUID
    ) -> Account | None:
        with self._db.read() as conn:
            row = conn.execute(
                """
                SELECT a.* FROM accounts a
                JOIN account_groups g ON g.id = a.group_id
                WHERE a.id = ? AND g.household_id = ?
                """,
                (str(account_id), str(household_id)),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_account(row)

    def get_by_name(self, group_id: UUID, name: str) -> Account | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM accounts WHERE group_id = ? AND name = ?",
                (str(group_id), name),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_account(row)

    def list_by_household(self, household_id: UUID) -> Iterable[Account]:
        with self._db.read() as conn:
            rows = conn.execute(
                """
                SELECT a.* FROM accounts a
                JOIN account_groups g ON g.id = a.group_id
                WHERE g.household_id = ?
                ORDER BY a.created_at
                """,
                (str(household_id),),
            ).fetchall()
            return [self._row_to_account(row) for row in rows]

    def list_by_group(self, group_id: UUID) -> Iterable[Account]:
        with self._db.read() as conn:
            rows = conn.execute(
                "SELECT * FROM accounts WHERE group_id = ? ORDER BY created_at",
                (str(group_id),),
            ).fetchall()
            return [self._row_to_account(row) for row in rows]

    def update(self, account: Account) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                UPDATE accounts SET
                    group_id = ?,
                    name = ?,
                    currency = ?,
                    starting_balance = ?,
                    is_archived = ?,
                    scope = ?,
                    owner_user_id = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    str(account.group_id),
                    account.name,
                    account.currency,
                    str(account.starting_balance),
                    1 if account.is_archived else 0,
                    account.scope.value,
                    str(account.owner_user_id) if account.owner_user_id else None,
                    account.updated_at.isoformat(),
                    str(account.id),
                ),
            )

    def delete(self, account_id: UUID) -> None:
        with self._db.transaction() as conn:
            _delete_transfer_groups_touching(conn, "?", (str(account_id),))
            conn.execute("DELETE FROM accounts WHERE id = ?", (str(account_id),))

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        return Account(
            name=row["name"],
            group_id=UUID(row["group_id"]),
            created_by_id=UUID(row["created_by_id"]),
            id=UUID(row["id"]),
            currency=row["currency"],
            starting_balance=Decimal(row["starting_balance"]),
            is_archived=bool(row["is_archived"]),
            scope=AccountScope(row["scope"]),
            owner_user_id=_uuid_or_none(row["owner_user_id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteCategoryRepository(CategoryRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, category: Category) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO categories (id, household_id, name, type, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(category.id),
                    str(category.household_id),
                    category.name,
                    category.type.value,
                    category.created_at.isoformat(),
                    category.updated_at.isoformat(),
                ),
            )

    def get(self, category_id: UUID) -> Category | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE id = ?", (str(category_id),)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_category(row)

    def get_by_name(self, household_id: UUID, name: str) -> Category | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE household_id = ? AND name = ?",
                (str(household_id), name),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_category(row)

    def list_by_household(
        self, household_id: UUID, category_type: CategoryType | None = None
    ) -> Iterable[Category]:
        with self._db.read() as conn:
            query = "SELECT * FROM categories WHERE household_id = ?"
            params: list[str] = [str(household_id)]
            if category_type is not None:
                query += " AND type = ?"
                params.append(category_type.value)
            query += " ORDER BY type, name"
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_category(row) for row in rows]

    def update(self, category: Category) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                "UPDATE categories SET name = ?, type = ?, updated_at = ? WHERE id = ?",
                (
                    category.name,
                    category.type.value,
                    category.updated_at.isoformat(),
                    str(category.id),
                ),
            )

    def delete(self, category_id: UUID) -> None:
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM categories WHERE id = ?", (str(category_id),))

    def is_in_use(self, category_id: UUID) -> bool:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT 1 FROM transactions WHERE category_id = ? LIMIT 1",
                (str(category_id),),
            ).fetchone()
            return row is not None

    def _row_to_category(self, row: sqlite3.Row) -> Category:
        return Category(
            name=row["name"],
            household_id=UUID(row["household_id"]),
            id=UUID(row["id"]),
            type=CategoryType(row["type"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteTransactionRepository(TransactionRepository):
    """SQLite implementation of TransactionRepository."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, txn: Transaction) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO transactions (id, account_id, category_id, magnitude, type, description,
                                          transaction_date, transfer_group_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(txn.id),
                    str(txn.account_id),
                    str(txn.category_id),
                    str(txn.magnitude),
                    txn.type.value,
                    txn.description,
                    txn.transaction_date.isoformat(),
                    str(txn.transfer_group_id) if txn.transfer_group_id else None,
                    txn.created_at.isoformat(),
                    txn.updated_at.isoformat(),
                ),
            )

    def get(self, txn_id: UUID) -> Transaction | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM transactions WHERE id = ?", (str(txn_id),)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_transaction(row)

    def get_for_household(self, txn_id: UUID, household_id: UUID) -> Transaction | None:
        with self._db.read() as conn:
            row = conn.execute(
                """
                SELECT t.* FROM transactions t
                JOIN accounts a ON a.id = t.account_id
                JOIN account_groups g ON g.id = a.group_id
                WHERE t.id = ? AND g.household_id = ?
                """,
                (str(txn_id), str(household_id)),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_transaction(row)

    def query(self, query: TransactionQuery) -> Iterable[Transaction]:
        if not query.account_ids:
            return []
        with self._db.read() as conn:
            placeholders = ", ".join("?" for _ in query.account_ids)
            sql = f"SELECT * FROM transactions WHERE account_id IN ({placeholders})"
            params: list[str] = [str(account_id) for account_id in query.account_ids]

            if query.category_id is not None:
                sql += " AND category_id = ?"
                params.append(str(query.category_id))
            if query.type is not None:
                sql += " AND type = ?"
                params.append(query.type.value)
            if query.date_from is not None:
                sql += " AND transaction_date >= ?"
                params.append(query.date_from.isoformat())
            if query.date_to is not None:
                sql += " AND transaction_date <= ?"
                params.append(query.date_to.isoformat())
            if query.text:
                sql += " AND instr(lower(coalesce(description, '')), ?) > 0"
                params.append(query.text.lower())

            sql += " ORDER BY transaction_date DESC, created_at DESC"
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_transaction(row) for row in rows]

    def list_by_account(self, account_id: UUID) -> Iterable[Transaction]:
        with self._db.read() as conn:
            rows = conn.execute(
                """
                SELECT * FROM transactions WHERE account_id = ?
                ORDER BY transaction_date DESC, created_at DESC
                """,
                (str(account_id),),
            ).fetchall()
            return [self._row_to_transaction(row) for row in rows]

    def list_by_transfer_group(self, group_id: UUID) -> Iterable[Transaction]:
        with self._db.read() as conn:
            rows = conn.execute(
                "SELECT * FROM transactions WHERE transfer_group_id = ?",
                (str(group_id),),
            ).fetchall()
            return [self._row_to_transaction(row) for row in rows]

    def list_amounts(
        self, account_ids: Iterable[UUID]
    ) -> Iterable[tuple[UUID, TransactionType, Decimal]]:
        ids = [str(account_id) for account_id in account_ids]
        if not ids:
            return []
        with self._db.read() as conn:
            placeholders = ", ".join("?" for _ in ids)
            rows = conn.execute(
                f"""
                SELECT account_id, type, magnitude FROM transactions
                WHERE account_id IN ({placeholders})
                """,
                ids,
            ).fetchall()
            return [
                (UUID(row["account_id"]), TransactionType(row["type"]), Decimal(row["magnitude"]))
                for row in rows
            ]

    def count(self) -> int:
        with self._db.read() as conn:
            return conn.execute("SELECT COUNT(*) FROM transactions").fetchone()[0]

    def update(self, txn: Transaction) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                """
                UPDATE transactions SET
                    account_id = ?,
                    category_id = ?,
                    magnitude = ?,
                    type = ?,
                    description = ?,
                    transaction_date = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    str(txn.account_id),
                    str(txn.category_id),
                    str(txn.magnitude),
                    txn.type.value,
                    txn.description,
                    txn.transaction_date.isoformat(),
                    txn.updated_at.isoformat(),
                    str(txn.id),
                ),
            )

    def delete(self, txn_id: UUID) -> None:
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM transactions WHERE id = ?", (str(txn_id),))

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        return Transaction(
            account_id=UUID(row["account_id"]),
            category_id=UUID(row["category_id"]),
            magnitude=Decimal(row["magnitude"]),
            type=TransactionType(row["type"]),
            transaction_date=date.fromisoformat(row["transaction_date"]),
            id=UUID(row["id"]),
            description=row["description"],
            transfer_group_id=_uuid_or_none(row["transfer_group_id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteTransferGroupRepository(TransferGroupRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def add(self, group: TransferGroup) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                "INSERT INTO transfer_groups (id, household_id, created_at) VALUES (?, ?, ?)",
                (str(group.id), str(group.household_id), group.created_at.isoformat()),
            )

    def get(self, group_id: UUID) -> TransferGroup | None:
        with self._db.read() as conn:
            row = conn.execute(
                "SELECT * FROM transfer_groups WHERE id = ?", (str(group_id),)
            ).fetchone()
            if row is None:
                return None
            return TransferGroup(
                household_id=UUID(row["household_id"]),
                id=UUID(row["id"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )

    def count(self) -> int:
        with self._db.read() as conn:
            return conn.execute("SELECT COUNT(*) FROM transfer_groups").fetchone()[0]

    def delete(self, group_id: UUID) -> None:
        with self._db.transaction() as conn:
            conn.execute(
                "DELETE FROM transactions WHERE transfer_group_id = ?", (str(group_id),)
            )
            conn.execute("DELETE FROM transfer_groups WHERE id = ?", (str(group_id),))
