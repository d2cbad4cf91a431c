"""
Import all models here to ensure they are registered with SQLAlchemy.
"""
from listpilot.models.base import Base

from listpilot.models.account import Account
