import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.models.database import engine, Base
from src.models import registration  # noqa: F401  registers the ORM tables
from src.app.middleware import registration_token_gate
from src.app.routes import admin, pages, registrations
from src.utils.exceptions import RegistrationError

logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Techelons-25 Registration", version="1.0.0")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Gate the confirmation pages
app.middleware("http")(registration_token_gate)


@app.exception_handler(RegistrationError)
async def registration_error_handler(request: Request, exc: RegistrationError):
    logger.info("Registration rejected (%s): %s", exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Include routers
app.include_router(registrations.router, prefix="/api")
app.include_router(admin.router, prefix="/api")
app.include_router(pages.router)
