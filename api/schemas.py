"""
schemas.py — Request/Response modele FastAPI.
Oddzielone od contracts.py żeby API mogło ewoluować niezależnie.
"""
from __future__ import annotations

from pydantic import BaseModel, Field


# ─────────────────────────── /evaluate ───────────────────────────

class EvaluateRequest(BaseModel):
    expression: str = Field(..., max_length=10_000)


# ─────────────────────────── webhook ─────────────────────────────

class WebhookAck(BaseModel):
    ok: bool = True


# ─────────────────────────── /health ─────────────────────────────

class HealthResponse(BaseModel):
    status: str
    db: str
    version: str
    uptime: str
