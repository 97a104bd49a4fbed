import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.core import config
from backend.core.errors import BookingError
from backend.database import Base, SessionLocal, engine, ensure_appointment_schema, ensure_blocked_slot_schema
from backend.models import admin_user, appointment, appointment_settings, audit_log, blocked_slot, subscription, user_account  # noqa: F401
from backend.routes import admin_routes, appointment_routes, auth_routes, metrics_routes
from backend.services.metrics_cache import MetricsCache
from backend.services.settings import ensure_default_settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logging.getLogger('httpx').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
        ensure_blocked_slot_schema()
        db = SessionLocal()
        try:
            ensure_default_settings(db)
        finally:
            db.close()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.validate_runtime_config()
    initialize_database()
    app.state.metrics_cache = MetricsCache()
    yield
    app.state.metrics_cache.clear()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


def format_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error.get('loc', ()) if part != 'body')
        message = error.get('msg', 'Invalid value').removeprefix('Value error, ')
        messages.append(f'{message} at "{location}"' if location else message)
    return 'Validation error: ' + '; '.join(messages)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content={'message': exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning('Validation error for %s: %s', request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={'message': format_validation_errors(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={'message': exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception('%s %s - unhandled error', request.method, request.url.path)
    return JSONResponse(status_code=500, content={'message': 'Internal Server Error'})


@app.get('/')
def root():
    return {'status': 'Fancy Feathers API Running'}


app.include_router(auth_routes.router, prefix='/api')
app.include_router(appointment_routes.router, prefix='/api')
app.include_router(admin_routes.router, prefix='/api')
app.include_router(metrics_routes.router, prefix='/api')
