"""
HTTP entry point: FastAPI app exposing the engine to the browser
integration.  Event routes feed the page registry; score and report
routes return the grade for a tab.

Run with ``uvicorn privacygrade.main:app`` or ``python -m privacygrade.main``.
"""

from __future__ import annotations

import contextlib
import os
from collections.abc import AsyncGenerator

import dotenv
import fastapi
import pydantic
import uvicorn
from fastapi.middleware import cors

from privacygrade import __version__, config, engine
from privacygrade.analysis import aggregator
from privacygrade.models import base, detection, observation, scoring
from privacygrade.utils import logger

dotenv.load_dotenv()

log = logger.create_logger("Server")


# ============================================================================
# Request Bodies
# ============================================================================


class LoadBody(base.CamelModel):
    url: str


class RequestBody(base.CamelModel):
    url: str
    tab_url: str | None = None


class Header(base.CamelModel):
    name: str
    value: str = ""


class ResponseHeadersBody(base.CamelModel):
    headers: list[Header] = pydantic.Field(default_factory=list)


class FingerprintBody(base.CamelModel):
    technique: str


class CanvasBody(base.CamelModel):
    width: int = pydantic.Field(ge=0)
    height: int = pydantic.Field(ge=0)
    pixels: list[int] | None = None


class PermissionBody(base.CamelModel):
    name: str


class FreshObservationBody(base.CamelModel):
    """Point-in-time collection made when the UI opens.

    ``pageId`` is the visit id returned by the load route when the
    collection started; it lets a collection that finishes after
    navigation be recognised as stale.
    """

    page_url: str
    page_id: str
    script_urls: list[str] = pydantic.Field(default_factory=list)
    cookies: list[observation.Cookie] = pydantic.Field(default_factory=list)
    forms: observation.FormSignal | None = None
    form_fields: list[observation.FormField] | None = None
    fingerprint_signals: dict[str, int] = pydantic.Field(default_factory=dict)
    permissions: list[str] = pydantic.Field(default_factory=list)


class LoadResponse(base.CamelModel):
    tracked: bool
    page_id: str | None = None


class EventResponse(base.CamelModel):
    accepted: bool
    new_evidence: bool = False


# ============================================================================
# App
# ============================================================================


privacy_engine = engine.PrivacyEngine(config.get_settings())


@contextlib.asynccontextmanager
async def lifespan(_app: fastapi.FastAPI) -> AsyncGenerator[None]:
    """Log server start on startup."""
    log.section("PrivacyGrade Engine Started")
    log.info("Version", {"version": __version__})
    yield


app = fastapi.FastAPI(title="PrivacyGrade Engine", version=__version__, lifespan=lifespan)

app.add_middleware(
    cors.CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_engine() -> engine.PrivacyEngine:
    """Dependency returning the process-wide engine (overridable in tests)."""
    return privacy_engine


EngineDep = fastapi.Depends(get_engine)


# ============================================================================
# Routes
# ============================================================================


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@app.post("/api/tabs/{tab_id}/load")
def tab_load(tab_id: int, body: LoadBody, eng: engine.PrivacyEngine = EngineDep) -> LoadResponse:
    """A tab started loading a new top-level URL."""
    page_id = eng.on_tab_load_started(tab_id, body.url)
    return LoadResponse(tracked=page_id is not None, page_id=page_id)


@app.delete("/api/tabs/{tab_id}")
def tab_closed(tab_id: int, eng: engine.PrivacyEngine = EngineDep) -> EventResponse:
    eng.on_tab_closed(tab_id)
    return EventResponse(accepted=True)


@app.post("/api/tabs/{tab_id}/requests")
def request_observed(tab_id: int, body: RequestBody, eng: engine.PrivacyEngine = EngineDep) -> EventResponse:
    found = eng.on_request_observed(tab_id, body.url, body.tab_url)
    return EventResponse(accepted=eng.registry.is_tracked(tab_id), new_evidence=found)


@app.post("/api/tabs/{tab_id}/response-headers")
def response_headers(tab_id: int, body: ResponseHeadersBody, eng: engine.PrivacyEngine = EngineDep) -> EventResponse:
    added = eng.on_response_headers_observed(tab_id, [(h.name, h.value) for h in body.headers])
    return EventResponse(accepted=eng.registry.is_tracked(tab_id), new_evidence=added > 0)


@app.post("/api/tabs/{tab_id}/fingerprint")
def fingerprint_signal(
    tab_id: int,
    body: FingerprintBody,
    eng: engine.PrivacyEngine = EngineDep,
) -> detection.FingerprintEvaluation | EventResponse:
    evaluation = eng.on_fingerprint_signal(tab_id, body.technique)
    return evaluation if evaluation is not None else EventResponse(accepted=False)


@app.post("/api/tabs/{tab_id}/canvas")
def canvas_operation(
    tab_id: int,
    body: CanvasBody,
    eng: engine.PrivacyEngine = EngineDep,
) -> detection.FingerprintEvaluation | EventResponse:
    evaluation = eng.on_canvas_operation(tab_id, body.width, body.height, body.pixels)
    return evaluation if evaluation is not None else EventResponse(accepted=eng.registry.is_tracked(tab_id))


@app.post("/api/tabs/{tab_id}/forms")
def forms_observed(tab_id: int, body: observation.FormSignal, eng: engine.PrivacyEngine = EngineDep) -> EventResponse:
    eng.on_forms_observed(tab_id, body.fields, body.sensitive)
    return EventResponse(accepted=eng.registry.is_tracked(tab_id))


@app.post("/api/tabs/{tab_id}/permissions")
def permission_requested(tab_id: int, body: PermissionBody, eng: engine.PrivacyEngine = EngineDep) -> EventResponse:
    eng.on_permission_requested(tab_id, body.name)
    return EventResponse(accepted=eng.registry.is_tracked(tab_id))


@app.get("/api/tabs/{tab_id}/score")
def get_score(tab_id: int, eng: engine.PrivacyEngine = EngineDep) -> scoring.ScoreResult:
    return eng.get_score(tab_id)


@app.get("/api/tabs/{tab_id}/report")
def get_report(tab_id: int, eng: engine.PrivacyEngine = EngineDep) -> scoring.DetailedReport:
    return eng.get_detailed_report(tab_id)


@app.post("/api/tabs/{tab_id}/fresh-report")
def fresh_report(
    tab_id: int,
    body: FreshObservationBody,
    eng: engine.PrivacyEngine = EngineDep,
) -> scoring.DetailedReport:
    """Merge a fresh UI-side collection with the live observation and report."""
    forms = body.forms
    if body.form_fields is not None:
        forms = aggregator.count_form_fields(body.form_fields)
    fresh = eng.collect_fresh(
        tab_id,
        body.page_url,
        script_urls=body.script_urls,
        cookies=body.cookies,
        forms=forms,
        fingerprint_signals=body.fingerprint_signals,
        permissions=body.permissions,
        page_id=body.page_id,
    )
    return eng.get_detailed_report(tab_id, fresh)


def run() -> None:
    """Start the server with uvicorn (``PORT`` defaults to 3001)."""
    uvicorn.run(app, host=os.environ.get("HOST", "127.0.0.1"), port=int(os.environ.get("PORT", "3001")))


if __name__ == "__main__":
    run()
