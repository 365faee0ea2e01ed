import logging
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from .compiler import compile_filters
from .error_handlers import init_error_handlers
from .errors import FilterPayloadError
from .executor import InMemoryExecutor, QueryPlanExecutor
from .logging_config import setup_logging
from .middleware import RequestIdMiddleware
from .schemas import QueryPlan, SearchResponse
from .settings import settings
from .taxonomy import CategoricalField, GroupProfile, get_field, list_groups

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("catalog")

app = FastAPI(title="Property Catalog - Filter Compiler", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)
init_error_handlers(app)

def get_executor(request: Request) -> QueryPlanExecutor:
    executor = getattr(request.app.state, "executor", None)
    if executor is None:
        if settings.LISTINGS_PATH:
            executor = InMemoryExecutor.from_json_file(settings.LISTINGS_PATH)
        else:
            logger.warning("LISTINGS_PATH not set; searching an empty listing set")
            executor = InMemoryExecutor()
        request.app.state.executor = executor
    return executor

def _filter_payload(payload: Any, base_route: Optional[str]) -> dict[str, Any]:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise FilterPayloadError("Filter payload must be a JSON object")
    if base_route and not payload.get("baseRoute"):
        payload = {**payload, "baseRoute": base_route}
    return payload

@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/taxonomy/groups", response_model=list[GroupProfile])
def taxonomy_groups():
    return list_groups()

@app.get("/taxonomy/fields/{name}", response_model=CategoricalField)
def taxonomy_field(name: str):
    return get_field(name)

@app.post("/search/{group}/plan", response_model=QueryPlan)
def search_plan(
    group: str,
    payload: Any = Body(default=None),
    base_route: Optional[str] = Query(default=None, alias="baseRoute"),
):
    return compile_filters(group, _filter_payload(payload, base_route))

@app.post("/search/{group}", response_model=SearchResponse)
def search(
    group: str,
    payload: Any = Body(default=None),
    base_route: Optional[str] = Query(default=None, alias="baseRoute"),
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    executor: QueryPlanExecutor = Depends(get_executor),
):
    plan = compile_filters(group, _filter_payload(payload, base_route))
    page_size = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    page = executor.execute(plan, limit=page_size, offset=offset)
    return SearchResponse(plan=plan, page=page)
