from .identity import Identity, LocalUser, RequestContext, ServicePrincipal, normalize_role

__all__ = ["Identity", "LocalUser", "RequestContext", "ServicePrincipal", "normalize_role"]
