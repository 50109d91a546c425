"""
routers/ — One APIRouter per portal area (auth, jobs, files, email, payments...).

Routers check roles and job access, then hand off to services/ and turn
service error dicts into HTTPException.
"""
