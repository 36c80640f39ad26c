import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .config import configure_logging, get_settings
from .errors import (
    AuthError,
    BackendError,
    CartConflictError,
    EmptyCartError,
    NotFoundError,
    PermissionDeniedError,
    SoleMarketError,
    ValidationFailedError,
)
from .routers import auth, cart, catalog, checkout, finder, listings, profile, wishlist

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="SoleMarket Backend", version="0.1.0")

_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    ValidationFailedError: 422,
    CartConflictError: status.HTTP_409_CONFLICT,
    EmptyCartError: status.HTTP_400_BAD_REQUEST,
    AuthError: status.HTTP_401_UNAUTHORIZED,
    BackendError: status.HTTP_502_BAD_GATEWAY,
}


@app.exception_handler(SoleMarketError)
async def handle_domain_error(request: Request, exc: SoleMarketError):
    code = next((c for cls, c in _STATUS.items() if isinstance(exc, cls)), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    detail = exc.messages if isinstance(exc, ValidationFailedError) else str(exc)
    return JSONResponse(status_code=code, content={"detail": detail})


@app.get("/health")
def healthcheck():
    return {"status": "ok", "env": settings.env, "backend": settings.backend}


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(catalog.router, prefix="/catalog", tags=["catalog"])
app.include_router(listings.router, prefix="/listings", tags=["listings"])
app.include_router(cart.router, prefix="/cart", tags=["cart"])
app.include_router(wishlist.router, prefix="/wishlist", tags=["wishlist"])
app.include_router(checkout.router, prefix="/checkout", tags=["checkout"])
app.include_router(profile.router, prefix="/profile", tags=["profile"])
app.include_router(finder.router, prefix="/finder", tags=["finder"])
