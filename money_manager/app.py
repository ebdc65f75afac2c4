# money_manager/app.py

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from money_manager import __version__, auth
from money_manager.config import DEBUG, cors_origins
from money_manager.db import init_db, purge_old_notifications
from money_manager.routes import accounts, budgets, categories, chatbot, debts, expenses, incomes, notifications, users

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
        purged = purge_old_notifications()
        if purged:
            logger.info("Purged %d old notification(s)", purged)
    except Exception:
        logging.exception("DB init failed at startup")
        raise
    yield


app = FastAPI(
    title="Money Manager API",
    version=__version__,
    docs_url="/docs",
    redoc_url=None,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------------------------------------------
# Error responses
# -------------------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # rejected input is not echoed back; it may be a non-finite float JSON cannot carry
    errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
    return JSONResponse(status_code=400, content={"errors": jsonable_encoder(errors)})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server error"})


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------
@app.get("/api/health")
def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


app.include_router(auth.router)
app.include_router(accounts.router)
app.include_router(categories.expense_router)
app.include_router(categories.income_router)
app.include_router(expenses.router)
app.include_router(incomes.router)
app.include_router(budgets.router)
app.include_router(debts.router)
app.include_router(notifications.router)
app.include_router(users.router)
app.include_router(chatbot.router)
