"""Consumables ledger FastAPI application.

Processes commands synchronously over HTTP. Every request runs inside the
consumables domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - unset / "test" -> event_processing = "sync"  (alerts and the log update in the request)
#   - "production"   -> event_processing = "async" (handlers run in the Engine, see server.py)
from consumables.domain import consumables
from consumables.utils.logging import add_context, clear_context
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

consumables.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Consumables Ledger API",
    description="Consumable stock ledger: operations, stock alerts and inventory reconciliation",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the consumables domain context for each request."""
    add_context(method=request.method, path=request.url.path)
    try:
        with consumables.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from consumables.api import (  # noqa: E402
    alert_router,
    consumable_router,
    inventory_task_router,
    operation_router,
)

app.include_router(consumable_router)
app.include_router(operation_router)
app.include_router(alert_router)
app.include_router(inventory_task_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": consumables.name})
