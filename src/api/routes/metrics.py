"""Prometheus scrape endpoint for relay metrics."""

from __future__ import annotations

from fastapi import APIRouter, Response

from src.observability.metrics import get_content_type, get_metrics

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Session, generation, and interrupt metrics in exposition format."""
    return Response(content=get_metrics(), media_type=get_content_type())
