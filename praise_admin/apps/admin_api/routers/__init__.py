from praise_admin.apps.admin_api.routers.admin import router as admin_router
from praise_admin.apps.admin_api.routers.session import router as session_router
from praise_admin.apps.admin_api.routers.system import router as system_router

__all__ = ["admin_router", "session_router", "system_router"]
