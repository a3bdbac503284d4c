import asyncio
import hmac
from typing import Optional

import structlog

from errors import InternalError, Unauthenticated
from repositories.secrets import SecretStore

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "Bearer "


def tokens_match(token: str, secret: str) -> bool:
    """Length check, then a comparison whose cost does not depend on where bytes differ."""
    token_bytes = token.encode("utf-8")
    secret_bytes = secret.encode("utf-8")
    if len(token_bytes) != len(secret_bytes):
        return False
    return hmac.compare_digest(token_bytes, secret_bytes)


class AuthGate:
    """Shared-secret check in front of every data route.

    The secret is fetched from the store on first use and kept for the life
    of the process.
    """

    def __init__(self, store: SecretStore):
        self.store = store
        self._secret: Optional[str] = None
        self._lock = asyncio.Lock()

    async def secret(self) -> str:
        if self._secret is None:
            async with self._lock:
                if self._secret is None:
                    value = await self.store.get()
                    if not value:
                        logger.error("secret_store.empty", store=type(self.store).__name__)
                        raise InternalError("Authentication is not configured")
                    self._secret = value
                    logger.info("secret_store.loaded", store=type(self.store).__name__)
        return self._secret

    async def verify(self, authorization: Optional[str]) -> None:
        if not authorization:
            logger.info("auth.rejected", reason="missing")
            raise Unauthenticated("Unauthorized: Missing authentication token")

        secret = await self.secret()
        token = authorization[len(BEARER_PREFIX):] if authorization.startswith(BEARER_PREFIX) else authorization
        if not tokens_match(token, secret):
            logger.info("auth.rejected", reason="invalid")
            raise Unauthenticated("Unauthorized: Invalid authentication token")
