"""
Router: POST /evaluate
Liczy wyrażenie tym samym ewaluatorem co bot (bez Telegrama).
"""
from fastapi import APIRouter, Depends

from api.dependencies import get_evaluator
from api.schemas import EvaluateRequest
from contracts import EvaluationOutcome

router = APIRouter(prefix="/evaluate", tags=["evaluate"])


@router.post("", response_model=EvaluationOutcome)
async def evaluate_expression(
    body: EvaluateRequest,
    evaluator=Depends(get_evaluator),
) -> EvaluationOutcome:
    return evaluator.evaluate(body.expression)
