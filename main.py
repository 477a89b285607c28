from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from datarepo.config import settings
from datarepo.context.cache import context_cache
from datarepo.database.manager import DatabaseManager
from datarepo.exceptions.errors import DataAccessError
from datarepo.middleware.logging_md import LoggingMiddleware
from datarepo.middleware.scope_md import ScopeMiddleware
from datarepo.logging.logger import LogConfig
from datarepo.exceptions.handler import BusinessException, global_exception_handler
import apps.models  # noqa: F401  register entity sets
from apps.identity.api.router import router as identity_router

@asynccontextmanager
async def lifespan(app: FastAPI):
    manager = DatabaseManager.get_instance()
    manager.register_contexts(context_cache)
    await manager.sql.connect()
    yield
    await manager.sql.disconnect()

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Initialize logging configuration
LogConfig.setup_logging(to_files=settings.LOG_TO_FILES)

# Register global exception handlers
app.add_exception_handler(BusinessException, global_exception_handler)
app.add_exception_handler(DataAccessError, global_exception_handler)
app.add_exception_handler(RequestValidationError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Last added runs first: the trace id must exist before the scope is opened
app.add_middleware(ScopeMiddleware)
app.add_middleware(LoggingMiddleware)

app.include_router(
    identity_router,
    prefix=settings.API_V1_IDENTITY_PREFIX,
    tags=["Identity & Tenant"]
)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
