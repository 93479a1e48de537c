import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from config import Config
from database import Base, engine
from exception_handlers import register_exception_handlers
from models.User import User  # noqa: F401
from models.Material import Material  # noqa: F401
from models.Product import Product, ProductMaterial  # noqa: F401
from models.Income import Income  # noqa: F401
from models.Expense import Expense  # noqa: F401
from routes import (
    account_routes, auth_routes, dashboard_routes, expense_routes, income_routes,
    material_routes, product_routes, report_routes,
)
from services.rate_limit_services import InMemoryRateLimitStore, RateLimiter

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=Config.APP_NAME)

# PUBLIC_PATHS skip the bearer requirement in the generated docs
PUBLIC_PATHS = {
    "/auth/register", "/auth/login", "/auth/refresh",
    "/auth/forgot-password", "/auth/verify-otp", "/auth/reset-password",
}


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=Config.APP_NAME,
        version="1.0.0",
        description="Small-business finance API with JWT Auth",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    for path in openapi_schema["paths"]:
        if path in PUBLIC_PATHS:
            continue
        for method in openapi_schema["paths"][path]:
            if "security" not in openapi_schema["paths"][path][method]:
                openapi_schema["paths"][path][method]["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

app.state.rate_limiter = RateLimiter(
    InMemoryRateLimitStore(),
    max_requests=Config.RATE_LIMIT_MAX_REQUESTS,
    window_seconds=Config.RATE_LIMIT_WINDOW_SECONDS,
)


@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    logger.info("Starting %s API", Config.APP_NAME)


app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_routes.router, prefix="/auth", tags=["Authentication"])
app.include_router(account_routes.router, prefix="/account", tags=["Account"])
app.include_router(material_routes.router, prefix="/materials", tags=["Materials"])
app.include_router(product_routes.router, prefix="/products", tags=["Products"])
app.include_router(income_routes.router, prefix="/income", tags=["Income"])
app.include_router(expense_routes.router, prefix="/expenses", tags=["Expenses"])
app.include_router(dashboard_routes.router, prefix="/dashboard", tags=["Dashboard"])
app.include_router(report_routes.router, prefix="/reports", tags=["Reports"])
