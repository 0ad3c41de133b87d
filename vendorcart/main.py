# vendorcart/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import cart, checkout, discounts, payment_profiles
from .routes import orders as orders_router
from .settings import settings
from .db import close_pool

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="VendorCart Checkout API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cart.router)
app.include_router(payment_profiles.router)
app.include_router(checkout.router)
app.include_router(discounts.router)
app.include_router(orders_router.router)

@app.get("/")
def root():
    return {"message": "VendorCart API is running"}

@app.on_event("shutdown")
async def _shutdown_close_pool():
    await close_pool()
    logger.info("database pool closed")
