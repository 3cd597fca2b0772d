from fastapi import FastAPI, Request, status, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from medicare.config.database import engine, Base, settings
from medicare.routes import admin, appointment, auth, doctor, payment
from medicare.utils.exceptions import ServiceError
from medicare.utils.response import APIResponse
import medicare.models  # noqa: F401  registers every table on Base.metadata
import logging
import time

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.api_title,
    description="""
    Medical Appointment Booking API

    Patients browse doctors, book appointments and pay; doctors and admins
    manage the appointment lifecycle.

    ### Features:
    * **Doctors**: Public directory of approved doctors, doctor profiles and booking calendars
    * **Appointment Booking**: Slot conflict checks against working days and blocked dates
    * **Lifecycle**: Doctors accept/reject, patients cancel, admins override
    * **Payments**: Cash at the clinic or Khalti wallet, verified against the gateway

    ### Business Rules:
    * One live booking per doctor, date and time slot
    * Only **PENDING** appointments can be accepted, rejected or cancelled by doctors and patients
    * A completed payment cannot be initiated again
    """,
    version=settings.api_version,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    swagger_ui_parameters={
        "defaultModelsExpandDepth": -1,
        "docExpansion": "none",
        "filter": True
    }
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    elapsed_ms = (time.time() - start_time) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f}ms)")
    return response


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    logger.info(f"{request.method} {request.url.path} failed: {exc.error_type}: {exc.message}")
    return APIResponse.error(
        message=exc.message,
        error_type=exc.error_type,
        status_code=exc.status_code,
        details=jsonable_encoder(exc.details)
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return APIResponse.error(
        message=exc.detail,
        error_type="HTTPException",
        status_code=exc.status_code
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    return APIResponse.error(
        message="Validation Error",
        error_type="ValidationError",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details=errors
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return APIResponse.error(
        message="Internal server error",
        error_type="InternalError",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


system_router = APIRouter(prefix="/api", tags=["System"])

@system_router.get("/")
def api_root():
    """Root API endpoint with information"""
    return APIResponse.success(
        data={
            "version": settings.api_version,
            "documentation": {
                "swagger_ui": "/api/docs",
                "redoc": "/api/redoc",
                "openapi_schema": "/api/openapi.json"
            },
            "endpoints": {
                "auth": "/api/v1/auth",
                "doctors": "/api/v1/doctors",
                "appointments": "/api/v1/appointments",
                "payments": "/api/v1/payments",
                "admin": "/api/v1/admin"
            }
        },
        message="MediCare Appointment Booking API"
    )

@system_router.get("/health")
def health_check():
    """Health check endpoint for monitoring"""
    return APIResponse.success(
        data={
            "status": "healthy",
            "service": "medicare-api",
            "version": settings.api_version
        }
    )

app.include_router(system_router)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(doctor.router, prefix="/api/v1")
app.include_router(appointment.router, prefix="/api/v1")
app.include_router(payment.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medicare.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level
    )
