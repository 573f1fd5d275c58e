# shopsearch/api/deps.py
from fastapi import HTTPException, Request

from shopsearch.domain.services.search_orchestrator import SearchOrchestrator


# Dependency for injecting the orchestrator built at startup into endpoints
def engine_dep(request: Request) -> SearchOrchestrator:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Search engine unavailable")
    return engine
