import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# import your routers
from app.api import analytics as analytics_router
from app.api import imports as imports_router
from app.api import trades as trades_router

from app.db import Base, engine
import app.models  # noqa: F401  registers tables on Base.metadata

logger = logging.getLogger(__name__)

app = FastAPI(title="Futures Trade Journal API")

# CORS - keep permissive for local dev, lock down in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # change to your frontend origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(trades_router.router)
app.include_router(analytics_router.router)
app.include_router(imports_router.router)


@app.on_event("startup")
def on_startup():
    """
    Create DB tables on startup (development convenience).
    """
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured (create_all).")


@app.get("/api/health")
def health():
    return {"status": "ok"}
