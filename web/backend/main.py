import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title="BeatWave API", version="1.0.0")

# CORS: Allow environment override for production
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = (
    allowed_origins_env.split(",")
    if allowed_origins_env
    else ["http://localhost:5173"]  # Dev default
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
from web.backend.routers import comments, discovery, profile, tracks

app.include_router(tracks.router, prefix="/api", tags=["tracks"])
app.include_router(profile.router, prefix="/api", tags=["profile"])
app.include_router(comments.router, prefix="/api", tags=["comments"])
app.include_router(discovery.router, prefix="/api", tags=["discovery"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
