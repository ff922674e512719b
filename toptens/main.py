import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from toptens.config import AUTO_CREATE_DB_SCHEMA, LOG_LEVEL
from toptens.database import Base, async_create_engine
from toptens.routers import comments
from toptens.routers import rankings
from toptens.routers import reactions


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if AUTO_CREATE_DB_SCHEMA:
        async with async_create_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema verified")
    yield
    await async_create_engine.dispose()


app = FastAPI(
    title="API TopTens",
    description="backend service for app TopTens",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(rankings.router)
app.include_router(comments.router)
app.include_router(reactions.router)


@app.exception_handler(RequestValidationError)
async def invalid_argument_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def datastore_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Datastore failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/")
async def home():
    return {"message": "Welcome to TopTens!"}
