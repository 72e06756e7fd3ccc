from typing import Optional

from fastapi import APIRouter
from backend import metrics

router = APIRouter()


@router.get("/api/metrics")
def get_metrics(name: Optional[str] = None):
    """Return current in-memory counters, or {name: value} for a single counter."""
    if name is not None:
        return {name: metrics.get(name)}
    return metrics.get_all()
