from lovedev.adapters.api.v1.users.me import router

__all__ = ["router"]
