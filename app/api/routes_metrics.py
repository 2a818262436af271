import hmac

from fastapi import APIRouter, HTTPException, Request, Response

from app.infra.metrics import Metrics

router = APIRouter()


def _authorized(request: Request, token: str) -> bool:
    supplied = request.headers.get("Authorization", "")
    return hmac.compare_digest(supplied.encode(), f"Bearer {token}".encode())


@router.get("/metrics", include_in_schema=False)
async def metrics_endpoint(request: Request) -> Response:
    metrics_client: Metrics | None = getattr(request.app.state, "metrics", None)
    if metrics_client is None or not metrics_client.enabled:
        raise HTTPException(status_code=404, detail="Metrics disabled")

    token = request.app.state.app_settings.metrics_token
    if token and not _authorized(request, token):
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})

    payload, content_type = metrics_client.render()
    return Response(content=payload, media_type=content_type)
