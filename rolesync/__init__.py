"""rolesync: projects source policy roles onto RBAC roles."""

__version__ = "0.1.0"
