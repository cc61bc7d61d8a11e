# nutshell/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nutshell.config import settings
from nutshell.core.db import init_db, close_db
from nutshell.core.pubsub import hub

from nutshell.api.v1.routers import events, tables, transcripts, insights, notices, questions, assistant
from nutshell.api.v1.routers.ws_events import router as ws_events_router

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS for the dashboard, facilitator console and sponsor view
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup():
    await init_db(generate_schemas=settings.env == "dev")
    if settings.openai_api_key and settings.enable_ai:
        logger.info("[startup] AI enabled: model=%s", settings.gpt_model)
    else:
        logger.warning("[startup] OPENAI_API_KEY not set or AI disabled -> sentiment is neutral, no insight extraction")


@app.on_event("shutdown")
async def on_shutdown():
    await close_db()


# REST
app.include_router(events.router, prefix="/api/v1")
app.include_router(tables.router, prefix="/api/v1")
app.include_router(transcripts.router, prefix="/api/v1")
app.include_router(insights.router, prefix="/api/v1")
app.include_router(notices.router, prefix="/api/v1")
app.include_router(questions.router, prefix="/api/v1")
app.include_router(assistant.router, prefix="/api/v1")

# WebSocket push stream
app.include_router(ws_events_router)


@app.get("/healthz")
def healthz():
    return {"ok": True, "connections": len(hub)}
