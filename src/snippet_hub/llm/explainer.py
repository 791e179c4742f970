"""
Code Explainer

Turns a code snippet into a beginner-friendly explanation using the chat
model. Every failure, whether transport, HTTP status or malformed response,
is raised as `ExplanationServiceError` carrying the underlying message.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..core.errors import ExplanationServiceError
from .client import LLMClient

logger = logging.getLogger("snippets.explain")


EXPLAIN_SYSTEM_PROMPT = "You are a helpful coding assistant."

EXPLAIN_PROMPT_TEMPLATE = """\
Explain the following {language} snippet clearly and concisely.

Cover:
1. What the code does, in two or three sentences
2. The key concepts or techniques it uses
3. Possible improvements or things to watch out for

Code:
```{fence}
{code}
```

Keep the explanation beginner-friendly but technically accurate.
"""


def build_explain_prompt(code: str, language: Optional[str] = None) -> str:
    return EXPLAIN_PROMPT_TEMPLATE.format(
        language=language or "code",
        fence=language or "",
        code=code,
    )


class CodeExplainer:
    """Stateless wrapper around `LLMClient` for code explanations."""

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def explain(self, code: str, language: Optional[str] = None) -> str:
        """
        Return the model's explanation of `code`.

        Raises
        ------
        ExplanationServiceError
            If the model is not configured, unreachable, or returns no text.
        """
        if not self._llm.configured:
            raise ExplanationServiceError(details="No language model API key is configured.")

        messages = [{"role": "user", "content": build_explain_prompt(code, language)}]

        try:
            message = await self._llm.chat(EXPLAIN_SYSTEM_PROMPT, messages)
        except httpx.HTTPStatusError as exc:
            logger.error("Explanation model returned HTTP %s", exc.response.status_code)
            raise ExplanationServiceError(
                details=f"Upstream model returned HTTP {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Explanation model unreachable: %s", exc)
            raise ExplanationServiceError(details=str(exc) or type(exc).__name__) from exc
        except (KeyError, IndexError, ValueError) as exc:
            logger.error("Malformed explanation response: %s", exc)
            raise ExplanationServiceError(details="Malformed response from upstream model.") from exc

        explanation = (message.get("content") or "").strip()
        if not explanation:
            raise ExplanationServiceError(details="Upstream model returned an empty explanation.")

        return explanation
