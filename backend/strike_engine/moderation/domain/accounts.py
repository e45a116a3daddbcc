"""Account restriction store and admin capability checks."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Dict, Iterable, Protocol

from strike_engine.moderation.domain.errors import NotFoundError
from strike_engine.moderation.domain.models import AccountPatch, AccountState


class AccountRepository(Protocol):
    async def get_state(self, user_id: str) -> AccountState | None:
        ...

    async def set_state(self, user_id: str, patch: AccountPatch) -> AccountState:
        ...


class AuthorizationChecker(Protocol):
    async def is_admin(self, user_id: str) -> bool:
        ...


class AccountAdminChecker(AuthorizationChecker):
    """Reads the admin flag carried on the account row."""

    def __init__(self, accounts: AccountRepository) -> None:
        self._accounts = accounts

    async def is_admin(self, user_id: str) -> bool:
        if not user_id:
            return False
        state = await self._accounts.get_state(user_id)
        return bool(state and state.is_admin and not state.banned)


class StaticAdminChecker(AuthorizationChecker):
    def __init__(self, admin_ids: Iterable[str]) -> None:
        self._ids = frozenset(str(item).strip() for item in admin_ids if str(item).strip())

    async def is_admin(self, user_id: str) -> bool:
        return user_id in self._ids


class AnyAdminChecker(AuthorizationChecker):
    def __init__(self, *checkers: AuthorizationChecker) -> None:
        self._checkers = checkers

    async def is_admin(self, user_id: str) -> bool:
        for checker in self._checkers:
            if await checker.is_admin(user_id):
                return True
        return False


class InMemoryAccountRepository(AccountRepository):
    def __init__(self) -> None:
        self.accounts: Dict[str, AccountState] = {}

    def add(self, state: AccountState) -> AccountState:
        self.accounts[state.user_id] = state
        return state

    async def get_state(self, user_id: str) -> AccountState | None:
        await asyncio.sleep(0)
        state = self.accounts.get(user_id)
        return replace(state) if state is not None else None

    async def set_state(self, user_id: str, patch: AccountPatch) -> AccountState:
        state = self.accounts.get(user_id)
        if state is None:
            raise NotFoundError("account_not_found")
        state.banned = patch.banned
        state.suspended = patch.suspended
        state.suspension_expiry = patch.suspension_expiry
        return replace(state)
