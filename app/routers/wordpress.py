"""WordPress membership lookups (staff)."""

from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..dependencies import require_staff
from ..models import User
from ..schemas.users import WordPressLookup
from ..services.wordpress_service import WordPressError, find_user_by_email

router = APIRouter(tags=["wordpress"])


@router.post("/api/wordpress/user-by-email")
async def user_by_email(body: WordPressLookup, user: User = Depends(require_staff)):
    if not settings.wordpress_admin_username or not settings.wordpress_admin_password:
        raise HTTPException(500, "WordPress integration is not configured")
    try:
        wp_user = await find_user_by_email(body.email)
    except WordPressError as e:
        raise HTTPException(500, str(e))
    if wp_user is None:
        return {"found": False, "user": None}
    return {"found": True, "user": wp_user}
