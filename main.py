import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from config import Settings, get_settings
from database import FLIGHTS_COLLECTION, FlightStore, connect, to_str_id
from flight_service import FlightResult, FlightService, Outcome
from schemas import ApiResponse

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

BODY_TOO_LARGE_MESSAGE = "Request body too large"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}

STATUS_BY_OUTCOME = {
    Outcome.OK: 200,
    Outcome.NOT_FOUND: 404,
    Outcome.VALIDATION_FAILURE: 400,
    Outcome.CONFLICT: 400,
}


def envelope(status_code: int, **fields: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ApiResponse(**fields).body())


def encode(data: Any) -> Any:
    if isinstance(data, list):
        return [jsonable_encoder(to_str_id(doc)) for doc in data]
    return jsonable_encoder(to_str_id(data))


def to_response(result: FlightResult, message: Optional[str] = None, success_status: int = 200) -> JSONResponse:
    if result.ok:
        return envelope(success_status, success=True, data=encode(result.data), message=message)
    return envelope(
        STATUS_BY_OUTCOME[result.outcome],
        success=False,
        message=result.message,
        errors=result.errors or None,
    )


def internal_fault(message: str, exc: Exception) -> JSONResponse:
    logger.exception(message)
    return envelope(500, success=False, message=message, error=str(exc)[:80] or type(exc).__name__)


class BodySizeLimitMiddleware:
    """Reject request bodies over ``max_body_bytes``, counting what is actually received."""

    def __init__(self, app: ASGIApp, max_body_bytes: int):
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_bytes:
            response = envelope(413, success=False, message=BODY_TOO_LARGE_MESSAGE)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    # chunked bodies carry no Content-Length
                    raise HTTPException(status_code=413, detail=BODY_TOO_LARGE_MESSAGE)
            return message

        await self.app(scope, limited_receive, send)


def get_flight_service(request: Request) -> FlightService:
    return request.app.state.flight_service


# --------- Flights ---------
router = APIRouter(prefix="/api/flights", tags=["flights"])


@router.get("")
def get_all_flights(service: FlightService = Depends(get_flight_service)):
    try:
        result = service.list_flights()
    except Exception as exc:
        return internal_fault("Error retrieving flights", exc)
    return envelope(200, success=True, count=len(result.data), data=encode(result.data))


@router.get("/{flight_code}")
def get_flight_by_code(flight_code: str, service: FlightService = Depends(get_flight_service)):
    try:
        result = service.get_flight(flight_code)
    except Exception as exc:
        return internal_fault("Error retrieving flight", exc)
    return to_response(result)


@router.post("")
def create_flight(
    payload: Dict[str, Any] = Body(...),
    service: FlightService = Depends(get_flight_service),
):
    try:
        result = service.create_flight(payload)
    except Exception as exc:
        return internal_fault("Error creating flight", exc)
    return to_response(result, message="Flight created successfully", success_status=201)


@router.put("/{flight_code}")
def update_flight(
    flight_code: str,
    payload: Dict[str, Any] = Body(...),
    service: FlightService = Depends(get_flight_service),
):
    try:
        result = service.update_flight(flight_code, payload)
    except Exception as exc:
        return internal_fault("Error updating flight", exc)
    return to_response(result, message="Flight updated successfully")


@router.delete("/{flight_code}")
def delete_flight(flight_code: str, service: FlightService = Depends(get_flight_service)):
    try:
        result = service.delete_flight(flight_code)
    except Exception as exc:
        return internal_fault("Error deleting flight", exc)
    return to_response(result, message="Flight deleted successfully")


# --------- Application ---------
def create_app(database: Optional[Database] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the API. Pass ``database`` to run against an existing handle instead of DATABASE_URL."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        client = None
        db = database
        if db is None:
            client = connect(settings)
            db = client[settings.database_name]
        store = FlightStore(db[FLIGHTS_COLLECTION])
        store.ensure_indexes()
        application.state.flight_service = FlightService(store)
        logger.info("Flights API started (database=%s, environment=%s)", db.name, settings.environment)
        try:
            yield
        finally:
            if client is not None:
                client.close()
                logger.info("MongoDB connection closed")

    app = FastAPI(title="Flights API", version=API_VERSION, lifespan=lifespan)

    # last added is outermost: CORS, then headers and logging, then the body limit
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    @app.middleware("http")
    async def security_and_logging(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = envelope(500, success=False, message="Internal server error")
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return envelope(400, success=False, message="Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return envelope(404, success=False, message=f"Route {request.url.path} not found")
        return envelope(exc.status_code, success=False, message=str(exc.detail))

    # --------- Basic endpoints ---------
    @app.get("/health")
    def health():
        return {
            "success": True,
            "message": "Flights API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
        }

    @app.get("/")
    def root():
        return {
            "success": True,
            "message": "Welcome to Flights API",
            "version": API_VERSION,
            "endpoints": {
                "health": "GET /health",
                "flights": {
                    "getAll": "GET /api/flights",
                    "getByCode": "GET /api/flights/:flightCode",
                    "create": "POST /api/flights",
                    "update": "PUT /api/flights/:flightCode",
                    "delete": "DELETE /api/flights/:flightCode",
                },
            },
        }

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
