from fastapi import APIRouter
from app.api.v1.endpoints import auth, businesses, debts, navigation, purchase_invoices, suppliers

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(businesses.router, prefix="/businesses", tags=["businesses"])
api_router.include_router(navigation.router, prefix="/navigation", tags=["navigation"])
api_router.include_router(debts.router, prefix="/debts", tags=["debts"])
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
api_router.include_router(purchase_invoices.router, prefix="/purchase-invoices", tags=["purchase-invoices"])
