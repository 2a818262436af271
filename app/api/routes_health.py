from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/health")
async def api_health(request: Request) -> dict[str, object]:
    app_settings = getattr(request.app.state, "app_settings", None)
    chat_service = getattr(request.app.state, "chat_service", None)
    ai_backend = getattr(chat_service, "ai_backend", None)
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": getattr(app_settings, "app_version", "1.0.0"),
        "service": "Sathi AI Support",
        "demoMode": bool(getattr(ai_backend, "demo_mode", False)),
        "faqEntries": len(getattr(chat_service, "faq_table", ())),
    }
