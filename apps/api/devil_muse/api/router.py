from fastapi import APIRouter

from devil_muse.api.endpoints.devil_pov import router as devil_pov_router

api_router = APIRouter()
api_router.include_router(devil_pov_router)
