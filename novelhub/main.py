from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from novelhub.api.routes import glossary, tasks, title_gen, translator
from novelhub.config import get_settings
from novelhub.core.exceptions import global_exception_handler, http_exception_handler, job_state_exception_handler, request_validation_exception_handler
from novelhub.core.lifespan import lifespan
from novelhub.core.middleware import RequestLoggingMiddleware
from novelhub.jobs.models import JobStateError

settings = get_settings()

app = FastAPI(title="NovelHub Backend", lifespan=lifespan)

app.add_middleware(CORSMiddleware, allow_origins=settings.allowed_origins, allow_credentials=True, allow_methods=["GET", "POST", "DELETE", "OPTIONS"], allow_headers=["content-type", "authorization"], expose_headers=["content-length"])

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(JobStateError, job_state_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": "0.1.0"}


app.include_router(translator.router)
app.include_router(title_gen.router)
app.include_router(glossary.router)
app.include_router(tasks.router, prefix="/internal")
