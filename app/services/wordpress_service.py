"""WordPress membership-site lookups and role mapping.

Business Rules:
- administrator/admin → admin; editor/shop_manager/manager → manager;
  author/contributor/designer → designer; anything else → client
- For a list of roles the highest-privilege mapped role wins
- Lookups authenticate with the configured admin credentials against the
  JWT auth plugin, search by email, then fetch the exact match with
  context=edit (roles are only exposed in that context)

Called by: routers/wordpress.py
Depends on: http_client (shared httpx client), config (wordpress_* settings)
"""

import httpx
from loguru import logger

from ..config import settings
from ..http_client import http

_ROLE_MAP = {
    "administrator": "admin",
    "admin": "admin",
    "editor": "manager",
    "shop_manager": "manager",
    "manager": "manager",
    "author": "designer",
    "contributor": "designer",
    "designer": "designer",
}
_RANK = {"client": 0, "designer": 1, "manager": 2, "admin": 3}


class WordPressError(Exception):
    """WordPress is unconfigured, unreachable, or rejected the request."""


def map_wordpress_role(roles) -> str:
    """Map one WordPress role (or a list of them) to a portal role."""
    if isinstance(roles, str):
        roles = [roles]
    best = "client"
    for role in roles or []:
        mapped = _ROLE_MAP.get(str(role).strip().lower(), "client")
        if _RANK[mapped] > _RANK[best]:
            best = mapped
    return best


async def _admin_token() -> str:
    if not settings.wordpress_admin_username or not settings.wordpress_admin_password:
        raise WordPressError("WordPress credentials not configured")
    resp = await http.post(
        f"{settings.wordpress_api_url}/jwt-auth/v1/token",
        json={
            "username": settings.wordpress_admin_username,
            "password": settings.wordpress_admin_password,
        },
        timeout=15,
    )
    if resp.status_code != 200:
        raise WordPressError("WordPress authentication failed")
    token = resp.json().get("token")
    if not token:
        raise WordPressError("WordPress authentication failed")
    return token


async def find_user_by_email(email: str) -> dict | None:
    """Return {id, email, name, username, roles, mapped_role} or None when no user matches."""
    try:
        token = await _admin_token()
        headers = {"Authorization": f"Bearer {token}"}
        resp = await http.get(
            f"{settings.wordpress_api_url}/wp/v2/users",
            params={"search": email, "context": "edit"},
            headers=headers,
            timeout=15,
        )
        if resp.status_code != 200:
            raise WordPressError("Failed to search WordPress users")

        wanted = email.strip().lower()
        match = next(
            (u for u in resp.json() if (u.get("email") or "").lower() == wanted), None
        )
        if not match:
            return None

        resp = await http.get(
            f"{settings.wordpress_api_url}/wp/v2/users/{match['id']}",
            params={"context": "edit"},
            headers=headers,
            timeout=15,
        )
        if resp.status_code != 200:
            raise WordPressError("Failed to get user details")
        data = resp.json()
    except httpx.HTTPError as e:
        logger.error("WordPress lookup failed for {}: {}", email, e)
        raise WordPressError(f"WordPress unreachable: {e}") from e

    roles = data.get("roles") or []
    return {
        "id": data.get("id"),
        "email": data.get("email"),
        "name": data.get("name"),
        "username": data.get("slug"),
        "roles": roles,
        "mapped_role": map_wordpress_role(roles),
    }
