"""API router aggregation"""
from fastapi import APIRouter
from homestock.api.endpoints import auth_endpoints, user_endpoints

api_router = APIRouter()

api_router.include_router(auth_endpoints.router, prefix="/auth",  tags=["Authentication"])
api_router.include_router(user_endpoints.router, prefix="/users", tags=["Users"])
