from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import health, papers, qa
from arxiv_assistant.logger import GLOBAL_LOGGER as log
from db.database import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("Application startup initiated")
    await init_db()
    yield
    log.info("Application shutdown")


app = FastAPI(title="arXiv Paper Assistant", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router Registration
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(papers.router, tags=["papers"])
app.include_router(qa.router, tags=["qa"])


@app.get("/")
async def root():
    return {"message": "Backend is running"}


if __name__ == "__main__":
    uvicorn.run("api.main:app", host="0.0.0.0", port=8080)
