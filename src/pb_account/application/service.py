"""AccountService — the only writer of User.balance.

Every balance mutation is a read-modify-write under the user's entity lock,
so concurrent debit/credit on one user never interleave. Name-based login is
serialized on the lower-cased name so two first logins cannot create two
users.
"""

import logging
import math
import uuid

from config.settings import settings
from src.pb_account.domain.models import User
from src.pb_account.domain.repository import UserRepositoryProtocol
from src.pb_account.infrastructure.persistence import UserRepository
from src.pb_common.datetime_utils import utc_now
from src.pb_common.errors import (
    InsufficientFundsError,
    InvalidAmountError,
    InvalidNameError,
    UserNotFoundError,
)
from src.pb_ledger.domain.store import LedgerStoreProtocol
from src.pb_ledger.locking import USER, entity_lock

logger = logging.getLogger(__name__)

_USERNAME = "username"


class AccountService:
    def __init__(
        self,
        repo: UserRepositoryProtocol | None = None,
        starting_balance: float | None = None,
    ) -> None:
        self._repo: UserRepositoryProtocol = repo or UserRepository()
        self._starting_balance = (
            starting_balance if starting_balance is not None else settings.STARTING_BALANCE
        )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def create_user(self, store: LedgerStoreProtocol, name: str) -> User:
        """Idempotent login: an existing user with the same name is returned unchanged."""
        name = (name or "").strip()
        if not name:
            raise InvalidNameError()

        async with entity_lock(store, _USERNAME, name.lower()):
            existing_id = await self._repo.get_user_id_by_name(store, name)
            if existing_id is not None:
                existing = await self._repo.get_user(store, existing_id)
                if existing is not None:
                    return existing
                logger.warning("Stale name index for %r -> %s, recreating", name, existing_id)

            user = User(
                id=str(uuid.uuid4()),
                name=name,
                balance=self._starting_balance,
                created_at=utc_now(),
            )
            await self._repo.insert_user(store, user)

        logger.info("User created: id=%s name=%r balance=%g", user.id, user.name, user.balance)
        return user

    async def get_user(self, store: LedgerStoreProtocol, user_id: str) -> User:
        user = await self._repo.get_user(store, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_user_by_name(self, store: LedgerStoreProtocol, name: str) -> User:
        user_id = await self._repo.get_user_id_by_name(store, name)
        user = await self._repo.get_user(store, user_id) if user_id else None
        if user is None:
            raise UserNotFoundError(name)
        return user

    async def list_users(self, store: LedgerStoreProtocol) -> list[User]:
        """All users, richest first (leaderboard order)."""
        users = await self._repo.list_users(store)
        return sorted(users, key=lambda u: (-u.balance, u.name.lower()))

    async def delete_user(self, store: LedgerStoreProtocol, user_id: str) -> bool:
        """Remove the record and its name index. Bets stay as historical records."""
        async with entity_lock(store, USER, user_id):
            user = await self._repo.get_user(store, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            await self._repo.delete_user(store, user)
        logger.info("User deleted: id=%s name=%r", user.id, user.name)
        return True

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------

    async def debit(self, store: LedgerStoreProtocol, user_id: str, amount: float) -> User:
        async with entity_lock(store, USER, user_id):
            user = await self.get_user(store, user_id)
            if amount > user.balance:
                raise InsufficientFundsError(required=amount, available=user.balance)
            user.balance -= amount
            await self._repo.save_user(store, user)
        return user

    async def credit(self, store: LedgerStoreProtocol, user_id: str, amount: float) -> User:
        async with entity_lock(store, USER, user_id):
            return await self.adjust_locked(store, user_id, amount)

    async def adjust_locked(self, store: LedgerStoreProtocol, user_id: str, delta: float) -> User:
        """Add delta to the balance. The caller must already hold the user's lock."""
        user = await self.get_user(store, user_id)
        user.balance += delta
        await self._repo.save_user(store, user)
        return user

    async def add_balance(self, store: LedgerStoreProtocol, user_id: str, amount: float) -> User:
        """Public top-up; amount must be positive and finite."""
        if not (math.isfinite(amount) and amount > 0):
            raise InvalidAmountError(amount)
        user = await self.credit(store, user_id, amount)
        logger.info("Balance added: user=%s amount=%g balance=%g", user_id, amount, user.balance)
        return user
