# skillexchange/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skillexchange.config import settings
from skillexchange.database import Base, engine
from skillexchange.exceptions import SkillExchangeError
from skillexchange.api import admin, feedback, notification, profile, report, session

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

# Initialize FastAPI app
app = FastAPI(title="SkillExchange API", debug=settings.DEBUG)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://0.0.0.0:8000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SkillExchangeError)
async def skillexchange_error_handler(request: Request, exc: SkillExchangeError):
    if exc.status_code >= 500:
        logger.error("Unhandled domain error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_code": exc.error_code, **exc.extra},
    )


# API routers
app.include_router(session.router)       # /sessions/*
app.include_router(feedback.router)      # /feedback/*
app.include_router(profile.router)       # /profile/*
app.include_router(report.router)        # /reports/*
app.include_router(notification.router)  # /notifications/*
app.include_router(admin.router)         # /admin/*


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "message": "SkillExchange API is running",
        "version": "0.1.0",
    }
