from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from flowsmith.config import settings
from flowsmith.api import builder, generation, workflows
from flowsmith.core.errors import FlowsmithError
from flowsmith.core.logging import logger, log_fields
from flowsmith.database import init_models
from flowsmith.integrations.http_client import HttpClient
from flowsmith.services.generation_guard import generation_guard

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if settings.AUTO_CREATE_TABLES:
        await init_models()
    yield
    # Shutdown
    await HttpClient.close_client()
    await generation_guard.aclose()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(FlowsmithError)
async def flowsmith_error_handler(request: Request, exc: FlowsmithError):
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{request.method} {request.url.path} failed: {exc.message}",
        extra=log_fields(status=exc.status_code, error_type=type(exc).__name__),
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())

app.include_router(generation.router, prefix=settings.API_V1_STR, tags=["generation"])
app.include_router(builder.router, prefix=f"{settings.API_V1_STR}/builder", tags=["builder"])
app.include_router(workflows.router, prefix=f"{settings.API_V1_STR}/workflows", tags=["workflows"])

@app.get("/")
async def root():
    return {"message": "Flowsmith API is running"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
