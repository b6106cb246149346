"""FileVault API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from filevault.api.auth import app_auth
from filevault.api.files import app_files
from filevault.api.info import app_info
from filevault.api.users import app_users
from filevault.config import get_settings
from filevault.connections import filevault_connections
from filevault.errors import FileVaultError
from filevault.services import Services


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.info("Connecting to elasticsearch, redis and rabbitmq...")
    async with filevault_connections(settings) as connections:
        app.state.services = Services.from_connections(connections, settings)
        yield
    logging.info("Connections closed")


app = FastAPI(
    title="FileVault",
    description=__doc__ if __doc__ else "",
    openapi_tags=[
        dict(name="info", description="Endpoints for server status and statistics"),
        dict(name="auth", description="Endpoints to log in and out"),
        dict(name="users", description="Endpoints for user registration"),
        dict(name="files", description="Endpoints to upload, list, publish and download files"),
    ],
    lifespan=lifespan,
)
app.include_router(app_info)
app.include_router(app_auth)
app.include_router(app_users)
app.include_router(app_files)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FileVaultError)
async def filevault_exception_handler(request: Request, exc: FileVaultError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.reason})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "There was an issue with the data you sent.", "fields_invalid": jsonable_encoder(exc.errors())},
    )
