from .attendance import router as attendance_router
from .health import router as health_router
from .ui import router as ui_router
from .users import router as users_router

# for wildcard imports
__all__ = ["attendance_router", "health_router", "ui_router", "users_router"]
