import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware
from core.database import Base, engine
from routers import event_router, ticket_router
from routers import qr_router, fraud_router, stats_router
from models import event, ticket, verification_attempt, fraud_alert  # noqa: F401
from core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("fairpass")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Development convenience; production schemas come from alembic
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="FairPass QR Verification API", lifespan=lifespan)

# Respect X-Forwarded-For so scanner IPs in the audit log are real
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(event_router.router)
app.include_router(ticket_router.router)
app.include_router(qr_router.router)
app.include_router(fraud_router.router)
app.include_router(stats_router.router)


@app.exception_handler(SQLAlchemyError)
async def storage_unavailable(request: Request, exc: SQLAlchemyError):
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})


@app.get("/")
def root():
    return {"message": "FairPass QR Verification API Ready"}


@app.get("/health")
def health():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=503,
            content={"service": "fairpass-qr", "status": "unhealthy", "error": str(e)},
        )
    return {
        "service": "fairpass-qr",
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
