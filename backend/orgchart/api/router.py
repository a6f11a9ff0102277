from fastapi import APIRouter

from orgchart.api.rpc import rpc_router

api_router = APIRouter()
api_router.include_router(rpc_router)
