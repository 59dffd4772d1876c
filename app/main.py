import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import settings
from app.database import Base, engine
from app.errors import PricingError
from app.models import activity_log as activity_log_model, coupon as coupon_model  # noqa: F401
from app.models import order as order_model, product as product_model  # noqa: F401
from app.routers import admin as admin_router
from app.routers import coupons as coupons_router
from app.routers import orders as orders_router
from app.routers import products as products_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("app")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Storefront Checkout API",
    description="Catalog, coupons and order checkout with server-side pricing",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products_router.router)
app.include_router(coupons_router.router)
app.include_router(orders_router.router)
app.include_router(admin_router.router)


@app.get("/health")
def health():
    return {"status": "healthy"}


def error_body(status_code: int, detail, tag: Optional[str] = None) -> JSONResponse:
    content = {"error": {"status_code": status_code, "detail": detail}}
    if tag:
        content["error"]["type"] = tag
    return JSONResponse(status_code=status_code, content=content)


# Proper JSON error with correct status code
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return error_body(exc.status_code, exc.detail)


@app.exception_handler(PricingError)
async def pricing_error_handler(request: Request, exc: PricingError):
    logger.info("Checkout rejected (%s): %s", exc.tag, exc.message)
    return error_body(exc.status_code, exc.message, exc.tag)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
