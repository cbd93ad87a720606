import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from errors import GradingError
from routers.admin import router as admin_router

# Routers
from routers.attempts import router as attempts_router
from routers.health import router as health_router
from routers.marking import router as marking_router
from routers.questions import router as questions_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("academy-grading")

app = FastAPI(title="Academy – Grading API")

# Allow calls from the portal dev server and production site
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "x-api-key", "x-admin-token"],
)


@app.exception_handler(GradingError)
async def grading_error_handler(request: Request, exc: GradingError):
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal server error occurred."},
    )


@app.get("/")
def health_root():
    return {"ok": True}


# Register routers
app.include_router(marking_router)  # /mark
app.include_router(attempts_router)  # /attempts/...
app.include_router(questions_router)  # /question-sets/...
app.include_router(admin_router)  # /admin/...
app.include_router(health_router)  # /health/...


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
