"""API routers."""
from .monitors import router as monitors_router
from .charts import router as charts_router
from .status import router as status_router

__all__ = ["monitors_router", "charts_router", "status_router"]
