from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os

from shared.config.database import init_models
from shared.exceptions import register_exception_handlers
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.product_service import models as product_models  # noqa: F401
from services.cart_service import models as cart_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401

from services.product_service.router import router as product_router
from services.cart_service.router import router as cart_router
from services.order_service.router import router as order_router

CREATE_TABLES_ON_STARTUP = os.getenv("CREATE_TABLES_ON_STARTUP", "true").lower() == "true"
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront API",
        description="Products, cart and order placement for the storefront mobile app.",
        version="1.0.0",
    )

    # --- OBSERVABILITY BOOTSTRAP ---
    setup_observability(app, "storefront")

    # --- SECURITY SETUP ---
    app.state.limiter = limiter
    register_exception_handlers(app)

    allow_origins = [origin.strip() for origin in ALLOWED_ORIGINS.split(",")] if ALLOWED_ORIGINS else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(product_router)
    app.include_router(cart_router)
    app.include_router(order_router)

    @app.get("/health", include_in_schema=False)
    async def health_check():
        return {"service": "storefront", "status": "running"}

    @app.on_event("startup")
    async def startup_event():
        if CREATE_TABLES_ON_STARTUP:
            await init_models()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
