import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from missionmap import settings
from missionmap.api.routers import missions, rules, geometries
from missionmap.db import init_db

logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

app = FastAPI(title="Mission Map API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health():
    return {"ok": True}


# 初回起動時にDBスキーマを作成
@app.on_event("startup")
def on_startup():
    init_db()

app.include_router(missions.router,   prefix="/missions", tags=["missions"])
app.include_router(rules.router,      prefix="/missions", tags=["rules"])
app.include_router(geometries.router, prefix="/missions", tags=["geometries"])
