from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.api.http import documents_router, health_router
from app.core.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = FastAPI(
    title="Sponsor Docs",
    description="Документы спонсоров: публикация, поиск, голосование",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(documents_router)


@app.get("/")
async def root():
    return {
        "message": "Sponsor Docs API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
