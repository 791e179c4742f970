"""
Facet Routes

Distinct values used to populate filter options. Each call scans the whole
snippets collection; nothing is cached.
"""

from fastapi import APIRouter, Depends
from typing import List, Annotated

from .dependencies import get_snippet_repository
from ..snippets.models import LanguageCount, SUGGESTED_LANGUAGES
from ..snippets.repository import SnippetRepository

router = APIRouter(prefix="/facets", tags=["facets"])


@router.get("/languages", response_model=List[str])
async def list_languages(
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
) -> List[str]:
    return await repo.distinct_languages()


@router.get("/frameworks", response_model=List[str])
async def list_frameworks(
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
) -> List[str]:
    return await repo.distinct_frameworks()


@router.get("/tags", response_model=List[str])
async def list_tags(
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
) -> List[str]:
    return await repo.distinct_tags()


@router.get("/language-counts", response_model=List[LanguageCount])
async def list_language_counts(
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
) -> List[LanguageCount]:
    """Languages with their snippet counts, for the category overview."""
    return await repo.language_counts()


@router.get("/suggested-languages", response_model=List[str])
def list_suggested_languages() -> List[str]:
    return list(SUGGESTED_LANGUAGES)
