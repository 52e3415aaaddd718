from fastapi import APIRouter

from collector.api.urls_collect import collect_router
from collector.api.urls_maintenance import maintenance_router
from collector.api.urls_sites import sites_router

main_router = APIRouter()

# Register API routers ---------------------------------------
main_router.include_router(collect_router)
main_router.include_router(sites_router)
main_router.include_router(maintenance_router)
