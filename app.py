"""
Guru Inovatif API: Main Application
FastAPI application for the Indonesian teacher content-generation assistant.
Generates administrative packets, question banks and e-courses, plus media
tools, and keeps history, activity, feedback and admin data.
"""

from dotenv import load_dotenv
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database.database import engine, Base
from database import models  # noqa: F401  (registers tables on Base)
from routers import activity, admin, generation, history, media

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables."""
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="Guru Inovatif API",
    description="Resilient generation of teaching documents and media for Indonesian teachers",
    version="1.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Routers ───────────────────────────────────────────────────────────────────

# Generation
app.include_router(generation.router)        # /generation/*
app.include_router(media.router)             # /media/*, /search/grounded

# Teacher-side state
app.include_router(history.router)           # /history/*
app.include_router(activity.router)          # /activity, /feedback
app.include_router(admin.router)             # /admin/*


@app.get("/")
def root():
    return {
        "name": "Guru Inovatif API",
        "version": "1.1.0",
        "endpoints": {
            "docs": "/docs",
            "generation": "/generation",
            "media": "/media",
            "history": "/history",
            "activity": "/activity",
            "admin": "/admin",
        },
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "guru-inovatif-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
