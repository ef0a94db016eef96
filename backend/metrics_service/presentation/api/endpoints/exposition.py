"""Live metrics exposition for the external scraper."""

from fastapi import APIRouter, Request, Response

from metrics_service.infrastructure.metrics.registry import CONTENT_TYPE

router = APIRouter(tags=["Monitoring"])


@router.get("/metrics", response_class=Response)
async def export_metrics(request: Request) -> Response:
    """Every registered metric in the text exposition format. Unauthenticated."""
    request.app.state.process_metrics.collect()
    registry = request.app.state.metrics_registry
    return Response(content=registry.render_text(), media_type=CONTENT_TYPE)
