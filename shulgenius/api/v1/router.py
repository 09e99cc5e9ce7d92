from fastapi import APIRouter
from shulgenius.api.v1 import functions, processors, campaigns, payment_methods, invoices, subscriptions

api_router = APIRouter()

api_router.include_router(functions.router, prefix="/functions", tags=["functions"])
api_router.include_router(processors.router, prefix="/processors", tags=["processors"])
api_router.include_router(campaigns.router, prefix="/campaigns", tags=["campaigns"])
api_router.include_router(payment_methods.router, prefix="/members", tags=["payment-methods"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
