# main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from config import ENVIRONMENT
from database import init_db
from Services.errors import LifecycleError
from Services.vehicle_router import router as vehicle_router
from Services.driver_router import router as driver_router
from Services.route_router import router as route_router
from Services.trip_router import router as trip_router
from Services.maintenance_router import router as maintenance_router
from Services.alert_router import router as alert_router
import logging

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if ENVIRONMENT == "development" else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Fleet Operations API",
    description="""
    API for running a vehicle fleet:
    - Vehicle, driver and route management
    - Trip lifecycle (programmed, in progress, completed, cancelled)
    - Maintenance scheduling and completion
    - Maintenance and driver-hours alerts
    """,
    version="1.0.0",
    debug=ENVIRONMENT == "development"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Lifecycle rejections and store failures carry their own status and outcome
@app.exception_handler(LifecycleError)
async def lifecycle_exception_handler(request: Request, exc: LifecycleError):
    if exc.outcome == "unknown":
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=True)
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.code} {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response()
    )

# Exception handler for detailed error messages
@app.exception_handler(Exception)
async def debug_exception_handler(request: Request, exc: Exception):
    logger.error(f"Error processing request: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "type": type(exc).__name__}
    )

# Include routers
app.include_router(
    vehicle_router,
    prefix="/api/vehicles",
    tags=["vehicles"]
)

app.include_router(
    driver_router,
    prefix="/api/drivers",
    tags=["drivers"]
)

app.include_router(
    route_router,
    prefix="/api/routes",
    tags=["routes"]
)

app.include_router(
    trip_router,
    prefix="/api/trips",
    tags=["trips"]
)

app.include_router(
    maintenance_router,
    prefix="/api/maintenance",
    tags=["maintenance"]
)

app.include_router(
    alert_router,
    prefix="/api/alerts",
    tags=["alerts"]
)

# Initialize database on startup
@app.on_event("startup")
async def startup_event():
    logger.info("Initializing database...")
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise

@app.get("/")
async def root():
    return {
        "message": "Welcome to Fleet Operations API",
        "version": "1.0.0",
        "docs_url": "/docs",
        "redoc_url": "/redoc"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="debug")
