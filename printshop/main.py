import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from printshop.core.config import APP_NAME, CORS_ORIGINS, DEBUG, PORT, configure_logging
from printshop.core.deps import get_db
from printshop.core.exceptions import AppError
from printshop.routers import auth, otp, orders, products, contact, admin
from printshop.services.seed import init_db

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        init_db()
    except SQLAlchemyError:
        logger.exception("Database initialisation failed; some features may not work")
    yield


app = FastAPI(title=APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# every error leaves as {success: false, message, ...}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = {"success": False, "message": exc.detail}
    if isinstance(exc, AppError):
        content.update(exc.extra)
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    message = f"{field}: {err.get('msg')}" if field else err.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"success": False, "message": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"success": False, "message": "Internal server error"}
    if DEBUG:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


@app.get("/")
def home():
    return {"success": True, "message": f"{APP_NAME} is running"}


@app.get("/api/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(
            status_code=503,
            content={"success": False, "status": "unhealthy", "message": "Database connection failed", "database": {"connected": False}},
        )
    return {"success": True, "status": "healthy", "message": "API is running", "database": {"connected": True}}


app.include_router(auth.router, prefix="/api/auth")
app.include_router(otp.router, prefix="/api/auth")
app.include_router(orders.router, prefix="/api")
app.include_router(products.router, prefix="/api")
app.include_router(contact.router, prefix="/api")
app.include_router(admin.router, prefix="/api/admin")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("printshop.main:app", host="0.0.0.0", port=PORT)
