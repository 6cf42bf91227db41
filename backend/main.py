# backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import init_db, check_connection

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Router imports
from routes.auth import router as auth_router
from routes.admin import router as admin_router
from routes.logs import router as logs_router
from routes.products import router as products_router
from routes.categories import router as categories_router
from routes.suppliers import router as suppliers_router
from routes.customers import router as customers_router
from routes.sales import router as sales_router
from routes.purchases import router as purchases_router
from routes.expenses import router as expenses_router
from routes.invoice import router as invoice_router
from routes.reports import router as reports_router
from routes.dashboard import router as dashboard_router
from routes.stock import router as stock_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The API still comes up when the database is unreachable
    if check_connection():
        init_db()
        logger.info("Database ready")
    yield


app = FastAPI(title="POS API", version="1.0.0", lifespan=lifespan)

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(logs_router)
app.include_router(products_router)
app.include_router(categories_router)
app.include_router(suppliers_router)
app.include_router(customers_router)
app.include_router(sales_router)
app.include_router(purchases_router)
app.include_router(expenses_router)
app.include_router(invoice_router)
app.include_router(reports_router)
app.include_router(dashboard_router)
app.include_router(stock_router)

@app.get("/")
def read_root():
    return {"message": "POS API is running"}
