"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. String relationship targets ("AccountUser", "UserRole") resolve
  3. Other modules can import from accounts_service.models directly
"""

from accounts_service.models.account import Account, AccountStatus  # noqa: F401
from accounts_service.models.user import User  # noqa: F401
from accounts_service.models.role import Role, UserRole  # noqa: F401
from accounts_service.models.account_user import AccountUser  # noqa: F401
