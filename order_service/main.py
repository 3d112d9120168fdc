# order_service/main.py

"""
FastAPI Order Service API.
Lets clients browse the product catalog, place orders against stock, cancel
orders on the day they were placed, advance order status, and query revenue
analytics. The dataset is held in memory by a DatasetStore and written back to
storage after every change.
"""
import logging
import os
import sys
import time
from typing import Optional

from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from .analytics import Analytics
from .catalog import Catalog
from .db import DATABASE_URL, make_engine
from .errors import OrderServiceError
from .orders import OrderLifecycle
from .schemas import (
    ErrorResponse,
    OrderActionResponse,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    OverallRevenueResponse,
    ProductDetailResponse,
    ProductListResponse,
    ProductResponse,
    ProductRevenueResponse,
)
from .store import DatasetStore, JsonStorageBackend, SqlStorageBackend, load_document

# -----------------------------
# Configure Logging
# -----------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

# Suppress noisy logs from third-party libraries for cleaner output
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.INFO)

# Load environment variables
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql").lower()
DATA_FILE = os.getenv("DATA_FILE", "db.json")
SEED_FILE = os.getenv("SEED_FILE")
STARTUP_MAX_RETRIES = int(os.getenv("STARTUP_MAX_RETRIES", "10"))
STARTUP_RETRY_DELAY_SECONDS = int(os.getenv("STARTUP_RETRY_DELAY_SECONDS", "5"))


# -----------------------------
# FastAPI App Initialization
# -----------------------------
app = FastAPI(
    title="Order Service API",
    description="Product catalog, order lifecycle and revenue analytics",
    version="1.0.0",
)

# Enable CORS (for frontend dev/testing)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Use specific origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


# --- Error Handlers ---
@app.exception_handler(OrderServiceError)
async def order_service_error_handler(request: Request, exc: OrderServiceError):
    if exc.status_code < 500:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    path_errors = [e for e in errors if tuple(e.get("loc", ()))[:1] == ("path",)]
    if path_errors:
        # A non-numeric id cannot match any record.
        resource = "Order" if request.url.path.startswith("/orders") else "Product"
        message = f"{resource} not found"
        logger.warning(f"{request.method} {request.url.path} rejected: {message}")
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": message})
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body") or "body"
        message = f"Invalid value for '{location}': {first.get('msg')}"
    else:
        message = "Invalid request"
    logger.warning(f"{request.method} {request.url.path} rejected: {message}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


# --- Store Wiring ---
def build_store() -> DatasetStore:
    """
    Creates the storage backend selected by STORAGE_BACKEND and loads the dataset.
    For the SQL backend, tables are created if missing and an empty database is
    seeded from SEED_FILE when one is configured.
    """
    if STORAGE_BACKEND == "json":
        logger.info(f"Using JSON storage at {DATA_FILE}.")
        store = DatasetStore(JsonStorageBackend(DATA_FILE))
        store.load()
        return store

    backend = SqlStorageBackend(make_engine(DATABASE_URL))
    backend.create_tables()
    if SEED_FILE and backend.is_empty():
        logger.info(f"Database is empty; seeding from {SEED_FILE}.")
        backend.save(load_document(SEED_FILE).to_dataset())
    store = DatasetStore(backend)
    store.load()
    return store


# --- FastAPI Event Handlers ---
@app.on_event("startup")
async def startup_event():
    """
    Handles application startup events.
    Loads the dataset, retrying while the database is unreachable.
    """
    for i in range(STARTUP_MAX_RETRIES):
        try:
            logger.info(
                f"Attempting to load the dataset (attempt {i+1}/{STARTUP_MAX_RETRIES})..."
            )
            app.state.store = build_store()
            logger.info("Dataset loaded; service is ready.")
            break
        except OperationalError as e:
            logger.warning(f"Failed to connect to the database: {e}")
            if i < STARTUP_MAX_RETRIES - 1:
                logger.info(f"Retrying in {STARTUP_RETRY_DELAY_SECONDS} seconds...")
                time.sleep(STARTUP_RETRY_DELAY_SECONDS)
            else:
                logger.critical(
                    f"Failed to connect to the database after {STARTUP_MAX_RETRIES} attempts. Exiting application."
                )
                sys.exit(1)
        except Exception as e:
            logger.critical(
                f"An unexpected error occurred while loading the dataset: {e}",
                exc_info=True,
            )
            sys.exit(1)


# --- Dependencies ---
def get_store(request: Request) -> DatasetStore:
    return request.app.state.store


def get_catalog(store: DatasetStore = Depends(get_store)) -> Catalog:
    return Catalog(store)


def get_lifecycle(store: DatasetStore = Depends(get_store)) -> OrderLifecycle:
    return OrderLifecycle(store)


def get_analytics(store: DatasetStore = Depends(get_store)) -> Analytics:
    return Analytics(store)


def order_list(orders) -> OrderListResponse:
    return OrderListResponse(
        count=len(orders), orders=[OrderResponse.model_validate(o) for o in orders]
    )


# --- Root Endpoint ---
@app.get("/", status_code=status.HTTP_200_OK, summary="Root endpoint")
async def read_root():
    """
    Returns a welcome message and a map of the available endpoints.
    """
    return {
        "message": "E-commerce Orders & Analytics API",
        "endpoints": {
            "products": {
                "getAll": "GET /products",
                "getOne": "GET /products/:id",
            },
            "orders": {
                "create": "POST /orders",
                "getAll": "GET /orders",
                "cancel": "DELETE /orders/:orderId",
                "changeStatus": "PATCH /orders/change-status/:orderId",
            },
            "analytics": {
                "allOrders": "GET /analytics/allorders",
                "cancelledOrders": "GET /analytics/cancelled-orders",
                "shippedOrders": "GET /analytics/shipped",
                "totalRevenue": "GET /analytics/total-revenue/:productId",
                "overallRevenue": "GET /analytics/alltotalrevenue",
            },
        },
    }


# --- Health Check Endpoint ---
@app.get("/health", status_code=status.HTTP_200_OK, summary="Health check endpoint")
async def health_check():
    """
    A simple health check endpoint to verify the service is running.
    """
    return {"status": "ok", "service": "order-service"}


# -----------------------------
# Catalog Endpoints
# -----------------------------


@app.get("/products", response_model=ProductListResponse, summary="List all products")
def list_products(catalog: Catalog = Depends(get_catalog)):
    products = catalog.list_products()
    logger.info(f"Retrieved {len(products)} products.")
    return ProductListResponse(
        count=len(products),
        products=[ProductResponse.model_validate(p) for p in products],
    )


@app.get(
    "/products/{product_id}",
    response_model=ProductDetailResponse,
    responses=ERROR_RESPONSES,
    summary="Retrieve a product by ID",
)
def get_product(product_id: int, catalog: Catalog = Depends(get_catalog)):
    """
    Returns a single product, or 404 if no product has this ID.
    """
    product = catalog.get_product(product_id)
    return ProductDetailResponse(product=ProductResponse.model_validate(product))


# -----------------------------
# Order Endpoints
# -----------------------------


@app.post(
    "/orders",
    response_model=OrderActionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Place a new order",
)
def create_order(
    payload: Optional[OrderCreate] = Body(None),
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
):
    """
    Places an order and reserves its quantity from the product's stock.

    - `totalAmount` is the product price times the quantity.
    - 400 when input is missing or stock is insufficient, 404 for an unknown product.
    """
    payload = payload or OrderCreate()
    order = lifecycle.create_order(payload.product_id, payload.quantity)
    return OrderActionResponse(
        message="Order created successfully", order=OrderResponse.model_validate(order)
    )


@app.get("/orders", response_model=OrderListResponse, summary="List all orders")
def list_orders(lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """
    Returns every order, whatever its status.
    """
    return order_list(lifecycle.list_orders())


@app.delete(
    "/orders/{order_id}",
    response_model=OrderActionResponse,
    responses=ERROR_RESPONSES,
    summary="Cancel an order",
)
def cancel_order(order_id: int, lifecycle: OrderLifecycle = Depends(get_lifecycle)):
    """
    Soft-deletes an order by marking it cancelled and restoring its stock.
    Only allowed on the day the order was placed, and only once.
    """
    order = lifecycle.cancel_order(order_id)
    return OrderActionResponse(
        message="Order cancelled successfully", order=OrderResponse.model_validate(order)
    )


@app.patch(
    "/orders/change-status/{order_id}",
    response_model=OrderActionResponse,
    responses=ERROR_RESPONSES,
    summary="Advance an order's status",
)
def change_order_status(
    order_id: int,
    payload: Optional[OrderStatusUpdate] = Body(None),
    lifecycle: OrderLifecycle = Depends(get_lifecycle),
):
    """
    Moves an order one step along placed -> shipped -> delivered.
    Skipping a step or touching a cancelled/delivered order is rejected with 400.
    """
    payload = payload or OrderStatusUpdate()
    order = lifecycle.advance_status(order_id, payload.status)
    return OrderActionResponse(
        message="Order status updated successfully", order=OrderResponse.model_validate(order)
    )


# -----------------------------
# Analytics Endpoints
# -----------------------------


@app.get("/analytics/allorders", response_model=OrderListResponse, summary="All orders with count")
def analytics_all_orders(analytics: Analytics = Depends(get_analytics)):
    return order_list(analytics.all_orders())


@app.get(
    "/analytics/cancelled-orders",
    response_model=OrderListResponse,
    summary="Cancelled orders with count",
)
def analytics_cancelled_orders(analytics: Analytics = Depends(get_analytics)):
    return order_list(analytics.cancelled_orders())


@app.get("/analytics/shipped", response_model=OrderListResponse, summary="Shipped orders with count")
def analytics_shipped_orders(analytics: Analytics = Depends(get_analytics)):
    return order_list(analytics.shipped_orders())


@app.get(
    "/analytics/total-revenue/{product_id}",
    response_model=ProductRevenueResponse,
    responses=ERROR_RESPONSES,
    summary="Revenue for one product",
)
def analytics_product_revenue(product_id: int, analytics: Analytics = Depends(get_analytics)):
    """
    Sums quantity times the current price over the product's non-cancelled orders.
    """
    return ProductRevenueResponse.model_validate(analytics.revenue_for_product(product_id))


@app.get(
    "/analytics/alltotalrevenue",
    response_model=OverallRevenueResponse,
    summary="Revenue over all active orders",
)
def analytics_overall_revenue(analytics: Analytics = Depends(get_analytics)):
    return OverallRevenueResponse.model_validate(analytics.overall_revenue())
