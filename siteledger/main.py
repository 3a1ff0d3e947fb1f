from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from siteledger.common.error_handlers import register_error_handlers
from siteledger.core.config import settings
from siteledger.api.v1 import cash_deposit, inventory, ledger, supplier

app = FastAPI(title="Site Ledger", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Register API routers
app.include_router(ledger.router, prefix="/api/v1", tags=["ledgers"])
app.include_router(cash_deposit.router, prefix="/api/v1", tags=["cash deposits"])
app.include_router(supplier.router, prefix="/api/v1", tags=["suppliers"])
app.include_router(inventory.router, prefix="/api/v1", tags=["inventory"])


@app.get("/")
def read_root():
    return {"message": "Welcome to the Site Ledger APIs!"}
