"""
API routers
"""

from .mints import router as mints_router

routers = [
    mints_router,
]
