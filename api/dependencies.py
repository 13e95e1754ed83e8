"""
dependencies.py — FastAPI Dependency Injection.
Każda zależność zwraca odpowiedni obiekt przez Request.app.state.
"""
from __future__ import annotations

from fastapi import Request

from adapters.evaluator.arith_evaluator import ArithEvaluator
from bot.dispatcher import UpdateDispatcher
from config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_evaluator(request: Request) -> ArithEvaluator:
    return request.app.state.evaluator


def get_dispatcher(request: Request) -> UpdateDispatcher:
    return request.app.state.dispatcher
