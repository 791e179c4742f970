"""
Explanation Route

`POST /api/explain-code` forwards a snippet's code and language to the chat
model and returns its plain-language explanation.

Contract
--------
- success: 200 `{success: true, explanation}`
- missing code: 400 `{error: "Code is required"}`
- any downstream failure: 500 `{error, kind, details}` rendered by the
  global `ExplanationServiceError` handler

No retry and no rate limiting happen at this layer.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from typing import Annotated, Union

from .models import ExplainRequest, ExplainResponse
from .dependencies import get_code_explainer
from ..llm.explainer import CodeExplainer

router = APIRouter(prefix="/api", tags=["explain"])


@router.post(
    "/explain-code",
    response_model=ExplainResponse,
    summary="Explain a code snippet in plain language",
    responses={400: {"description": "Code is missing"}},
)
async def explain_code(
    req: ExplainRequest,
    explainer: Annotated[CodeExplainer, Depends(get_code_explainer)],
) -> Union[ExplainResponse, JSONResponse]:
    if not req.code or not req.code.strip():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Code is required"},
        )

    explanation = await explainer.explain(req.code, req.language)
    return ExplainResponse(explanation=explanation)
