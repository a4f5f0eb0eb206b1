from fastapi import APIRouter, Depends

from indexing_gateway.authentication.auth import authenticate_api_key
from indexing_gateway.indexing.presentation.indexing_router import router as indexing_router

router = APIRouter(dependencies=[Depends(authenticate_api_key)])

router.include_router(indexing_router)
