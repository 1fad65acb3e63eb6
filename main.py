from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, DatabaseError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from api.v1 import models  # noqa: F401  registers tables on Base.metadata
from api.v1.responses.success_response import success_response
from api.v1.utils.config import get_settings
from api.v1.utils.database import Base, engine
from api.v1.utils.exceptions import AppError
from api.v1.utils.helpers import utcnow
from api.v1.utils.logger import setup_logger
from api.v1.middleware.logging_middleware import LoggingMiddleware
from api.v1.middleware.exception_handler import (
    app_error_handler,
    validation_exception_handler,
    integrity_error_handler,
    database_error_handler,
    operational_error_handler,
    starlette_http_exception_handler,
    general_exception_handler,
)
from api.v1.routes.auth import auth
from api.v1.routes.transactions import transactions
from api.v1.routes.notifications import notifications
from api.v1.routes.user import user_router

load_dotenv()

settings = get_settings()

setup_logger(settings.LOG_LEVEL)


# create database tables

Base.metadata.create_all(bind=engine)

app: FastAPI = FastAPI(
    debug=settings.DEBUG,
    docs_url="/docs",
    redoc_url=None,
    title=settings.APP_NAME,
)

app.add_middleware(LoggingMiddleware)

# Exception middleware

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(OperationalError, operational_error_handler)
app.add_exception_handler(DatabaseError, database_error_handler)
app.add_exception_handler(Exception, general_exception_handler)

# cors middleware

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(auth)
api_v1.include_router(user_router)
api_v1.include_router(transactions)
api_v1.include_router(notifications)
app.include_router(api_v1)


@app.get("/")
async def index():
    return success_response(message=f"Welcome to {settings.APP_NAME}")


@app.get("/health")
async def health():
    return success_response(
        message="Backend is running", timestamp=utcnow().isoformat()
    )


# start server

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVER_PORT, reload=False)
