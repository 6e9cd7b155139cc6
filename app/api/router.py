from fastapi import APIRouter

from app.api.routers import auth, payments

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(payments.router)
