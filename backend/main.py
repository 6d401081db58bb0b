import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from export_engine import __version__
from export_engine.api.v1 import export
from export_engine.core.config import settings
from export_engine.exceptions.base import AppException


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title = settings.APP_NAME,
    description= "Detects tables, metrics, charts and rankings in a dashboard view and exports them",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins= settings.CORS_ORIGINS,
    allow_credentials = True,
    allow_methods = ["*"],
    allow_headers = ["*"],
    expose_headers = ["Content-Disposition", "X-Export-Notification"],
)

app.include_router(export.router, prefix="/api/v1")

@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )

@app.get("/")
def root():
    return {"message": f"{settings.APP_NAME} API"}
