# backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from database import init_db
from schemas.common import fail
from utils.errors import STATUS_CODES, InvalidArgument

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Router imports
from routes.auth import router as auth_router
from routes.users import router as users_router
from routes.drugs import router as drugs_router
from routes.sales import router as sales_router
from routes.stats import router as stats_router
from routes.ai import router as ai_router
from routes.logs import router as logs_router
from routes.health import router as health_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database initialised")
    yield


app = FastAPI(title="Pharmacy POS API", version="1.0.0", lifespan=lifespan)

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error leaves the API in the {success, data, message} envelope
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = getattr(exc, "code", None) or STATUS_CODES.get(exc.status_code, "Error")
    return JSONResponse(
        status_code=exc.status_code,
        content=fail(str(exc.detail), code),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid"))
    return JSONResponse(
        status_code=InvalidArgument.status_code,
        content=fail("; ".join(problems) or "Invalid request", InvalidArgument.code),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=fail("Internal server error", "Internal"))


# Router registration
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(drugs_router)
app.include_router(sales_router)
app.include_router(stats_router)
app.include_router(ai_router)
app.include_router(logs_router)
app.include_router(health_router)


@app.get("/")
def read_root():
    return {"success": True, "data": None, "message": "Pharmacy POS API is running"}
