from .catalog import RoleCatalogService
from .user_administration import UserAdministrationService

__all__ = ["RoleCatalogService", "UserAdministrationService"]
