from functools import lru_cache

from ..db import AsyncSessionLocal
from ..llm.client import LLMClient
from ..llm.explainer import CodeExplainer
from ..realtime.live_query import LiveQueryHub
from ..snippets.repository import SnippetRepository

@lru_cache
def get_live_query_hub() -> LiveQueryHub:
    return LiveQueryHub()

@lru_cache
def get_snippet_repository() -> SnippetRepository:
    # One repository per process, so every write reaches every live query
    return SnippetRepository(AsyncSessionLocal, get_live_query_hub())

@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient()

def get_code_explainer() -> CodeExplainer:
    return CodeExplainer(get_llm_client())
