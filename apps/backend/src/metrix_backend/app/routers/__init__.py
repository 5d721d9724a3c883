"""HTTP routers exposed by the collector."""

from metrix_backend.app.routers.metrics import router as metrics_router


__all__ = ["metrics_router"]
