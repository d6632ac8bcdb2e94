import logging
import os
from pathlib import Path

from fastapi import FastAPI, Request, Form, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from fastapi.staticfiles import StaticFiles

from .explanations import (
    EMPTY_INDICATORS_MESSAGE,
    EXAMPLES,
    STATUS_STYLES,
    ExplainMode,
    next_steps,
)
from .models import MAX_INPUT_CHARS, AnalyzeRequest, AnalyzeResponse
from .rules import DEFAULT_RULES_PATH, RuleEngine
from .session import AnalysisSession, EmptySubmission

# ------------------------------------------------------------------
#  Configuration
# ------------------------------------------------------------------
RULES_PATH = os.getenv("RULES_PATH", DEFAULT_RULES_PATH)
ANALYSIS_DELAY = float(os.getenv("ANALYSIS_DELAY", "0"))  # seconds, UI only
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PhishSense", version="1.0.0")

BASE_DIR = Path(__file__).parent.parent

app.mount(
    "/static",
    StaticFiles(directory=BASE_DIR / "static"),
    name="static",
)

templates = Jinja2Templates(directory=BASE_DIR / "templates")

# ------------------------------------------------------------------
#  Core Engine
# ------------------------------------------------------------------
engine = RuleEngine(RULES_PATH)


@app.on_event("startup")
async def _on_startup() -> None:
    logger.info("PhishSense started | rules: %s | delay: %.1fs", RULES_PATH, ANALYSIS_DELAY)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error("422 VALIDATION ERROR | %s | %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "message": "Invalid request payload."},
    )


# ------------------------------------------------------------------
#  UI Routes
# ------------------------------------------------------------------
def _page(request: Request, **context) -> HTMLResponse:
    context.setdefault("text", "")
    context.setdefault("url", "")
    return templates.TemplateResponse(
        request,
        "index.html",
        {"examples": EXAMPLES, "empty_message": EMPTY_INDICATORS_MESSAGE, **context},
    )


@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    """Render the form for pasting a message and an optional URL."""
    return _page(request)


@app.post("/analyze", response_class=HTMLResponse)
async def analyze_message(
    request: Request,
    text: str = Form("", max_length=MAX_INPUT_CHARS),
    url: str = Form("", max_length=MAX_INPUT_CHARS),
    mode: str = Form(ExplainMode.NORMAL.value),
):
    """
    Handle form submissions from the UI.
    Runs one analysis session (with the configured delay) and
    renders the result page in the requested explanation mode.
    """
    try:
        explain_mode = ExplainMode(mode)
    except ValueError:
        return _page(request, text=text, url=url, error=f"Unknown explanation mode {mode!r}.")

    session = AnalysisSession(engine, delay=ANALYSIS_DELAY)
    session.edit(text=text, url=url)
    try:
        result = await session.run()
    except EmptySubmission as e:
        return _page(request, text=text, url=url, error=str(e))
    session.set_mode(explain_mode)

    return _page(
        request,
        text=text,
        url=url,
        mode=explain_mode.value,
        result=result,
        style=STATUS_STYLES[result.status],
        explanation=session.explanation(),
        steps=next_steps(result.status),
    )


# ------------------------------------------------------------------
#  API Routes
# ------------------------------------------------------------------
@app.get("/health")
def health():
    return {"ok": True, "keywords": len(engine.keywords), "indicator_rules": len(engine.rules)}


@app.get("/rules")
def get_rules():
    return engine.describe()


@app.get("/examples")
def get_examples():
    return EXAMPLES


@app.post("/detect", response_model=AnalyzeResponse)
def detect(req: AnalyzeRequest):
    if not req.text.strip() and not req.url.strip():
        raise HTTPException(status_code=400, detail="Provide text or url to analyze.")
    ev = engine.evaluate(req.text, req.url)
    return AnalyzeResponse(
        status=ev.result.status,
        risk_score=ev.result.risk_score,
        indicators=ev.result.indicators,
        hits=ev.hits,
        matched_keywords=ev.matched_keywords,
        summary=ev.summary,
    )
