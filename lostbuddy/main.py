# lostbuddy/main.py
import os
import uuid
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError

from lostbuddy.db import check_store_health
from lostbuddy.accounts.auth_routes import router as auth_router

# =========================
# Environment & Constants
# =========================
ALLOWED = os.getenv("ALLOWED_ORIGINS", "http://localhost:8000")

# =========================
# Logging
# =========================
logger = logging.getLogger("lostbuddy")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

# =========================
# App Setup
# =========================
app = FastAPI(title="Lost Buddy Accounts API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in ALLOWED.split(",") if o.strip()],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)


# =========================
# Routes
# =========================
@app.get("/health")
def health():
    return {"status": "ok", "version": "v1", **check_store_health()}


# =========================
# Error Normalization
# =========================
def error_json(code: str, message: str, status: int = 400, request_id: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": {"code": code, "message": message}, "request_id": request_id or str(uuid.uuid4())})

@app.exception_handler(HTTPException)
async def http_exc_handler(request: Request, exc: HTTPException):
    if isinstance(exc.detail, dict):
        shaped = {"error": exc.detail.get("error", {"code": "HTTP_ERROR", "message": "Request error."}), "request_id": str(uuid.uuid4())}
        return JSONResponse(status_code=exc.status_code, content=shaped, headers=getattr(exc, "headers", None))
    return await http_exception_handler(request, exc)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc): return error_json("VALIDATION_ERROR", "Invalid input.", 422)
