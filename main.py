from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from routers import api_router
from config import settings
from database import engine, Base
from errors import AuthError, InternalError
from models.account import Account  # ensure model registration
import os
import logging
from sqlalchemy import inspect

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Only auto-create in test/dev scenarios (SQLite or env flag); elsewhere rely on Alembic.
if os.environ.get("TESTING") or engine.url.get_backend_name() == "sqlite" or os.environ.get("DEV_AUTO_CREATE") == "1":
    Base.metadata.create_all(bind=engine)
else:
    try:
        insp = inspect(engine)
        if "accounts" not in insp.get_table_names():
            logger.warning("Table 'accounts' missing. Run Alembic migrations: `alembic upgrade head`.")
    except Exception as e:
        logger.warning("Schema inspection failed: %s", e)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message}, headers=headers)


def _error_field(err: dict) -> str:
    # Whole-body failures (missing or undecodable JSON) carry no field path
    if err.get("type") == "json_invalid":
        return "body"
    return ".".join(str(p) for p in err["loc"][1:]) or "body"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = sorted({_error_field(err) for err in exc.errors()})
    return JSONResponse(status_code=400, content={"message": f"Invalid request: {', '.join(fields)}"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    # Detail stays in the log; the caller gets an opaque 500
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": InternalError.message})


app.include_router(api_router, prefix="/api")

@app.get("/")
async def root():
    return {"message": f"Welcome to the {settings.PROJECT_NAME}!"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.environ.get("PORT", "5000")), reload=settings.DEBUG)
