"""FastAPI application serving the four-persona AI debate."""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import DebateSettings, get_debate_settings, get_port
from debate import (
    PERSONAS,
    SEED_PERSONA,
    DebateService,
    DialogueEngine,
    InMemorySessionStore,
    ProviderRateLimiter,
    build_adapters,
    credential_status,
)
from debate.service import default_rotation_names
from routers import live, sessions

logger = logging.getLogger(__name__)


def build_debate_service(settings: Optional[DebateSettings] = None) -> DebateService:
    """Wire limiter, adapters, engine and store for one process."""
    settings = settings or get_debate_settings()
    limiter = ProviderRateLimiter(min_interval=settings.provider_min_interval_seconds)
    adapters = build_adapters(limiter, settings)
    engine = DialogueEngine(
        adapters,
        history_window=settings.history_window,
        max_turns=settings.max_turns,
    )
    return DebateService(engine, InMemorySessionStore(), settings)


def _log_credential_status(service: DebateService) -> None:
    logger.info("API Keys Status:")
    for persona, configured in credential_status(service.engine.adapters).items():
        logger.info("- %s: %s", persona, "Loaded" if configured else "Missing")


def create_app(debate_service: Optional[DebateService] = None) -> FastAPI:
    app = FastAPI(title="AI Debate Arena")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    service = debate_service or build_debate_service()
    app.state.debate_service = service
    app.include_router(sessions.router)
    app.include_router(live.router)

    @app.get("/providers")
    async def get_providers() -> Dict[str, Any]:
        """Report which persona backends have credentials configured.

        No provider is contacted; this only checks the environment.
        """
        adapters = service.engine.adapters
        configured = credential_status(adapters)
        personas = {}
        for persona, adapter in adapters.items():
            personas[persona.value] = {
                "display_name": PERSONAS[persona].display_name,
                "provider": adapter.provider,
                "model": getattr(adapter, "model", None),
                "configured": configured[persona.value],
            }
        return {
            "seed": SEED_PERSONA.value,
            "rotation": default_rotation_names(),
            "personas": personas,
        }

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "ok", "live_sessions": service.active_runs()}

    _log_credential_status(service)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=get_port())
