from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def add_default_middlewares(app: FastAPI) -> None:
    # CORS_ALLOWED_ORIGINS is a comma separated list; development falls back to the Next.js dev server
    configured = os.getenv("CORS_ALLOWED_ORIGINS", "")
    allowed_origins = [origin.strip() for origin in configured.split(",") if origin.strip()]
    if not allowed_origins and os.getenv("ENV", "development") in ("development", "staging"):
        allowed_origins = list(_DEV_ORIGINS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
