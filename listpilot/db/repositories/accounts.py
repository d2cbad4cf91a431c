# listpilot/db/repositories/accounts.py
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from listpilot.db.repositories.base import BaseRepository
from listpilot.models.account import Account
from listpilot.utils.ids import IDPrefix, generate_prefixed_id

logger = logging.getLogger("listpilot.db.accounts")


class AccountRepository(BaseRepository[Account]):
    """Repository for stored Brevo accounts."""

    def __init__(self, session: AsyncSession):
        super().__init__(session=session, model=Account)

    async def create_account(self, *, name: str, api_key: str) -> Account:
        """
        Register a new account.

        The first account registered becomes the active one.
        """
        has_accounts = await self.count() > 0
        account = Account(
            id=generate_prefixed_id(IDPrefix.ACCOUNT),
            name=name,
            api_key=api_key,
            is_active=not has_accounts,
        )
        self.session.add(account)
        await self.session.commit()
        await self.session.refresh(account)

        logger.info(f"Created account {account.id} ({name})")
        return account

    async def update_account(
        self,
        *,
        account_id: str,
        name: Optional[str] = None,
        api_key: Optional[str] = None
    ) -> Optional[Account]:
        """Update an account's name and/or API key."""
        return await self.update(id=account_id, obj_in={"name": name, "api_key": api_key})

    async def list_accounts(self) -> List[Account]:
        """All accounts, oldest first."""
        return await self.list(limit=1000)

    async def get_active(self) -> Optional[Account]:
        """Get the active account, if any."""
        query = select(Account).where(Account.is_active.is_(True))
        result = await self.session.execute(query)
        return result.scalars().first()

    async def set_active(self, account_id: str) -> Optional[Account]:
        """
        Mark one account as active and every other one inactive.

        Returns:
            Account: The activated account, or None if it does not exist
        """
        account = await self.get_by_id(account_id)
        if not account:
            return None

        await self.session.execute(
            update(Account).where(Account.id != account_id).values(is_active=False)
        )
        account.is_active = True
        self.session.add(account)
        await self.session.commit()
        await self.session.refresh(account)

        return account

    async def delete_account(self, account_id: str) -> bool:
        """
        Delete an account.

        If it was the active account, the oldest remaining account takes over.
        """
        account = await self.get_by_id(account_id)
        if not account:
            return False

        was_active = account.is_active
        await self.delete(id=account_id)

        if was_active:
            remaining = await self.list(limit=1)
            if remaining:
                await self.set_active(remaining[0].id)

        return True
