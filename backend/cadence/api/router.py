"""
Main API router.
"""

from fastapi import APIRouter
from cadence.api import recurring, income

api_router = APIRouter()

api_router.include_router(recurring.router)
api_router.include_router(income.router)
