import logging
from config import settings
from sqlalchemy import text
from sqlalchemy.orm import Session
from datetime import datetime, timezone
import models, database
from fastapi import FastAPI, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from responses import failure, http_error_handler, unhandled_error_handler, validation_error_handler
from routers import ALL_ROUTERS

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("mini_erp")

models.Base.metadata.create_all(bind=database.db_engine)

app = FastAPI(title= settings.PROJECT_NAME, version = settings.VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# request log
@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response

# basic info
@app.get("/", tags=["System"])
def basic_info():
    basic_details = {
        "app_name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "api_root": settings.API_PREFIX,
        "environment": settings.ENVIRONMENT,
    }
    return basic_details

# app health
@app.get("/health", tags=["System"])
def health_status(db: Session = Depends(database.obtain_db_session)):
    health_report = {
        "app_name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "server_time": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "online",
            "database": "unknown"
        }
    }

    try:
        db.execute(text("SELECT 1"))
        health_report["services"]["database"] = "online"
        return health_report
    except Exception as e:
        logger.exception("Health check failed")
        health_report["services"]["database"] = "offline"
        health_report["error_details"] = str(e)
        return failure(status.HTTP_503_SERVICE_UNAVAILABLE, "Database is offline", data=health_report)

for router in ALL_ROUTERS:
    app.include_router(router, prefix=settings.API_PREFIX)
