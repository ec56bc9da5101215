"""
Main API router.
"""

from fastapi import APIRouter
from finance_tracker.api import accounts, imports, transactions

api_router = APIRouter()

api_router.include_router(accounts.router)
api_router.include_router(imports.router)
api_router.include_router(transactions.router)
