from fastapi import FastAPI, APIRouter
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
import logging
from pathlib import Path
from contextlib import asynccontextmanager

# Load environment
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from buzybees.config import get_settings
from buzybees.database import Database
from buzybees.routers import bookings
from buzybees.utils.exceptions import register_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")
    for problem in settings.validate_production_settings():
        logger.warning(f"Configuration: {problem}")
    await Database.connect()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")
    bookings.reset_engines()
    await Database.disconnect()


# Create the main app
app = FastAPI(
    title=settings.APP_NAME,
    description="Booking composition and fulfillment for service providers",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Create versioned API router
api_v1 = APIRouter(prefix=settings.API_V1_PREFIX)
api_v1.include_router(bookings.router, prefix="/providers", tags=["Bookings"])

# Include versioned router
app.include_router(api_v1)


# Health check endpoints
@app.get("/", tags=["Health"])
async def root():
    return {"message": settings.APP_NAME, "version": settings.APP_VERSION}


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "server:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
