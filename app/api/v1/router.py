"""Main v1 router aggregator"""
from fastapi import APIRouter

from app.api.v1 import budgets, expenses

api_router = APIRouter()

api_router.include_router(budgets.router)
api_router.include_router(expenses.router)
