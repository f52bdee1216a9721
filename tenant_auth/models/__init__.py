"""
models/__init__.py
------------------
Re-export all models so create_tables.py (and Alembic's env.py) can import
Base and discover all tables via a single import:

    from tenant_auth.models import Base
"""

from tenant_auth.db.base import Base
from tenant_auth.models.tenant import Tenant
from tenant_auth.models.user import User, UserRoleAssignment
from tenant_auth.models.refresh_token import RefreshToken

__all__ = ["Base", "Tenant", "User", "UserRoleAssignment", "RefreshToken"]
