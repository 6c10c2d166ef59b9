import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from agenda.core import config
from agenda.core.errors import AgendaError, FieldValidationError, NotAuthenticatedError
from agenda.database import ensure_schema
from agenda.models import availability, booking, calendar_settings, event, user  # noqa: F401
from agenda.routes import auth_routes, availability_routes, booking_routes, event_routes, settings_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

app = FastAPI(title='Agenda')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(AgendaError)
async def handle_agenda_error(request: Request, exc: AgendaError) -> JSONResponse:
    content = {'detail': exc.detail}
    if isinstance(exc, FieldValidationError):
        content['field'] = exc.field

    headers = {'WWW-Authenticate': 'Bearer'} if isinstance(exc, NotAuthenticatedError) else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        ensure_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Agenda API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(booking_routes.router, prefix='/bookings')
app.include_router(event_routes.router, prefix='/events')
app.include_router(settings_routes.router, prefix='/settings')
