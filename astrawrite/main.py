from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from astrawrite import __version__
from astrawrite.api.routes import articles, auth, bulk, clusters, generation, keys, tools, wordpress
from astrawrite.config import get_settings
from astrawrite.core.exceptions import DOMAIN_EXCEPTIONS, domain_exception_handler, global_exception_handler, http_exception_handler, request_validation_exception_handler
from astrawrite.core.lifespan import lifespan
from astrawrite.core.middleware import RequestLoggingMiddleware

settings = get_settings()

app = FastAPI(title="AstraWrite", version=__version__, lifespan=lifespan)

app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=True, allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"], allow_headers=["content-type", "authorization"], expose_headers=["content-length", "x-request-id"])
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret, same_site="lax", https_only=settings.environment in {"production", "prod"})

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
for exc_type in DOMAIN_EXCEPTIONS:
  app.add_exception_handler(exc_type, domain_exception_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(keys.router, prefix="/api/keys", tags=["keys"])
app.include_router(generation.router, prefix="/api/generate", tags=["generation"])
app.include_router(tools.router, prefix="/api/tools", tags=["tools"])
app.include_router(articles.router, prefix="/api/articles", tags=["articles"])
app.include_router(bulk.router, prefix="/api/bulk", tags=["bulk"])
app.include_router(clusters.router, prefix="/api/clusters", tags=["clusters"])
app.include_router(wordpress.router, prefix="/api/wordpress", tags=["wordpress"])
