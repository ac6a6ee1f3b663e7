import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from campusbus.config import settings
from campusbus.database import Base, engine
from campusbus.auth import router as auth_router
from campusbus.schedules import router as schedules_router
from campusbus.bookings import router as bookings_router
from campusbus.conductor import router as conductor_router
from campusbus.admin import router as admin_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Campus shuttle seat booking API",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def create_tables():
    Base.metadata.create_all(bind=engine)

# Include routers
app.include_router(
    auth_router.router,
    prefix=f"{settings.API_V1_STR}/auth",
    tags=["Authentication"]
)

app.include_router(
    schedules_router.router,
    prefix=f"{settings.API_V1_STR}/buses",
    tags=["Buses & Schedules"]
)

app.include_router(
    bookings_router.router,
    prefix=f"{settings.API_V1_STR}/bookings",
    tags=["Bookings & Waiting List"]
)

app.include_router(
    conductor_router.router,
    prefix=f"{settings.API_V1_STR}/conductor",
    tags=["Conductor"]
)

app.include_router(
    admin_router.router,
    prefix=f"{settings.API_V1_STR}/admin",
    tags=["Admin"]
)

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Campus Bus Booking API",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
