#app/routes/__init__.py

from .driver import router as driver_router
from .pages import router as pages_router
