from lovedev.infrastructure.jobs.token_cleanup import purge_expired_refresh_tokens, run_token_cleanup

__all__ = ["purge_expired_refresh_tokens", "run_token_cleanup"]
