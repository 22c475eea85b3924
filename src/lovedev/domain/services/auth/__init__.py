from .authentication import AuthenticationFlow, AuthResult
from .session import SessionManager
from .token import TokenCodec

__all__ = ["AuthResult", "AuthenticationFlow", "SessionManager", "TokenCodec"]
