"""HTTP entry point powered by FastAPI."""

import time

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from bookharvest.adapters.registry import get_all_adapters, register_configured_sites
from bookharvest.config import Config, load_config
from bookharvest.errors import ConfigurationError
from bookharvest.harvest import harvest_with_report
from bookharvest.models import Candidate, SearchTask

app = FastAPI()


def _load_settings() -> Config:
    config = load_config()
    register_configured_sites(config.custom_sites)
    return config


_CONFIG = _load_settings()

_CACHE_MAX_ITEMS = 50
_CACHE: dict[tuple[str, str, str, str], tuple[float, list[Candidate]]] = {}


class HarvestRequest(BaseModel):
    target_site: str = Field(alias="targetSite")
    query: str
    isbn: str = ""
    author: str = ""


@app.get("/health")
async def health() -> JSONResponse:
    return JSONResponse({"status": "ok"})


@app.get("/sites")
async def sites() -> JSONResponse:
    return JSONResponse(
        [{"id": a.id, "name": a.name, "baseUrl": a.base_url} for a in get_all_adapters()]
    )


async def _cached_harvest(task: SearchTask) -> list[Candidate]:
    config = _CONFIG
    key = task.cache_key()
    now = time.time()
    cached = _CACHE.get(key)
    if cached and now - cached[0] < config.cache_ttl:
        return cached[1]

    report = await harvest_with_report(task, config)
    results = report.results

    # Fetch failures are not cached.
    if config.cache_ttl > 0 and report.error is None:
        if len(_CACHE) >= _CACHE_MAX_ITEMS:
            oldest = min(_CACHE.items(), key=lambda item: item[1][0])[0]
            _CACHE.pop(oldest, None)
        _CACHE[key] = (now, results)

    return results


@app.post("/harvest")
async def harvest_endpoint(payload: HarvestRequest) -> JSONResponse:
    try:
        task = SearchTask(
            target_site=payload.target_site,
            query=payload.query,
            isbn=payload.isbn,
            author=payload.author,
        )
        results = await _cached_harvest(task)
    except ConfigurationError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    return JSONResponse([c.to_dict() for c in results])
