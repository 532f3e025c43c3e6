from fastapi import APIRouter, HTTPException, Response

from core.prometheus_metrics import prometheus_collector

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("/prometheus")  # Public endpoint for Prometheus scraping
async def prometheus_metrics():
    """Prometheus metrics endpoint for scraping"""
    try:
        metrics_data = prometheus_collector.get_prometheus_metrics()
        return Response(content=metrics_data, media_type="text/plain")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate Prometheus metrics: {str(e)}")
