# listpilot/models/account.py
from sqlalchemy import Boolean, Column, String

from listpilot.models.base import Base


class Account(Base):
    """A Brevo account registered in the console."""

    name = Column(String, nullable=False, index=True)
    api_key = Column(String, nullable=False)

    # Only one account is active at a time; see AccountRepository.set_active
    is_active = Column(Boolean, default=False, nullable=False, index=True)
