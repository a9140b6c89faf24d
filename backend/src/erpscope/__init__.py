"""Multi-tenant, multi-company access control for ERP backends."""

__version__ = "0.1.0"
