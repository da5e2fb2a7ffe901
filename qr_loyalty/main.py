import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from qr_loyalty.db import engine, Base
from qr_loyalty.errors import LoyaltyError

from qr_loyalty.models.customer import Customer
from qr_loyalty.models.reward import Reward
from qr_loyalty.models.transaction import PointTransaction
from qr_loyalty.models.used_qr_code import UsedQrCode

from qr_loyalty.routes.redemptions import router as redemptions_router
from qr_loyalty.routes.customers import router as customers_router
from qr_loyalty.routes.rewards import router as rewards_router
from qr_loyalty.routes.admin import router as admin_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "https://localhost:3000",
    "http://127.0.0.1:3000",
    "https://127.0.0.1:3000",
]

app = FastAPI(title="QR Loyalty")

# ─── CORS ─────────────────────────────────────────────────────────
cors_origins = [o.strip() for o in (os.getenv("CORS_ALLOW_ORIGINS") or "").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins or DEFAULT_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── ERRORS ───────────────────────────────────────────────────────
@app.exception_handler(LoyaltyError)
def handle_loyalty_error(request: Request, exc: LoyaltyError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    logger.info("invalid request body", extra={"path": request.url.path, "errors": exc.errors()})
    return JSONResponse(status_code=400, content={"error": "Invalid request data"})


@app.exception_handler(StarletteHTTPException)
def handle_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(redemptions_router)
app.include_router(customers_router)
app.include_router(rewards_router)
app.include_router(admin_router)


@app.get("/")
def read_root():
    return {"message": "QR Loyalty is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8001, reload=True)
