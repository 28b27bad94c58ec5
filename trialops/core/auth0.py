"""
Auth0 RS256 JWT verification.

Signing keys come from the tenant's JWKS endpoint and are kept in memory
for six hours. An unknown ``kid`` forces one refresh so key rotation does
not lock users out.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx
from jose import JWTError, jwt

from trialops.config import get_settings

logger = logging.getLogger(__name__)

JWKS_CACHE_TTL_SECONDS = 6 * 60 * 60


class JWKSCache:
    def __init__(self, ttl_seconds: int = JWKS_CACHE_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._keys: Dict[str, Dict[str, str]] = {}
        self._fetched_at = 0.0

    def _is_stale(self) -> bool:
        return not self._keys or (time.time() - self._fetched_at) >= self.ttl_seconds

    async def _refresh(self, domain: str) -> None:
        logger.info("Refreshing Auth0 JWKS from %s", domain)
        async with httpx.AsyncClient() as client:
            resp = await client.get(f"https://{domain}/.well-known/jwks.json", timeout=10.0)
            resp.raise_for_status()
            jwks = resp.json()

        self._keys = {
            key["kid"]: {name: key[name] for name in ("kty", "kid", "use", "n", "e")}
            for key in jwks.get("keys", [])
            if key.get("kid")
        }
        self._fetched_at = time.time()

    async def get_key(self, domain: str, kid: str) -> Optional[Dict[str, str]]:
        if self._is_stale():
            await self._refresh(domain)
        if kid not in self._keys:
            logger.info("Key kid=%s not found in cache, refreshing JWKS", kid)
            await self._refresh(domain)
        return self._keys.get(kid)


_jwks = JWKSCache()


async def verify_auth0_token(token: str) -> Dict[str, Any]:
    """
    Verify issuer, audience, expiry and signature; return the claims.

    Raises:
        ValueError: If the token is invalid or cannot be verified.
    """
    settings = get_settings()
    domain = settings.auth0_domain
    audience = settings.auth0_audience

    if not domain or not audience:
        raise ValueError("Auth0 domain and audience must be configured")

    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError as e:
        raise ValueError(f"Invalid token header: {e}")
    if not kid:
        raise ValueError("Token header missing 'kid'")

    try:
        rsa_key = await _jwks.get_key(domain, kid)
    except httpx.HTTPError as e:
        raise ValueError(f"Could not fetch signing keys: {e}")
    if not rsa_key:
        raise ValueError(f"Unable to find matching key for kid={kid}")

    try:
        return jwt.decode(
            token,
            rsa_key,
            algorithms=["RS256"],
            audience=audience,
            issuer=f"https://{domain}/",
        )
    except JWTError as e:
        raise ValueError(f"Token verification failed: {e}")
