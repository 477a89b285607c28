"""
Model registration: import every table model here so SQLModel.metadata knows all entity sets
before tables are created or repositories resolve their entity-set names.
"""
from apps.identity.models import Tenant, User

__all__ = ["Tenant", "User"]
