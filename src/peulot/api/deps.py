"""FastAPI dependencies — the collaborators every route handler needs.

The lifespan in ``main`` builds them once and parks them on ``app.state``;
tests swap them through ``app.dependency_overrides``.
"""

from fastapi import Request

from peulot.generation.client import GenerationClient
from peulot.generation.insights import InsightsCache
from peulot.integrations.google_workspace import GoogleDocsClient
from peulot.storage.base import Storage


def get_store(request: Request) -> Storage:
    return request.app.state.store


def get_generation_client(request: Request) -> GenerationClient:
    return request.app.state.generation_client


def get_docs_client(request: Request) -> GoogleDocsClient:
    return request.app.state.docs_client


def get_insights_cache(request: Request) -> InsightsCache:
    return request.app.state.insights_cache
