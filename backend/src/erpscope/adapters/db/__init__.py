"""Database adapters."""

from erpscope.adapters.db.app_db import AppDatabase
from erpscope.adapters.db.scope import apply_company_scope, ensure_in_scope

__all__ = ["AppDatabase", "apply_company_scope", "ensure_in_scope"]
