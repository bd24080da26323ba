from fastapi import APIRouter, Depends

from wingshop.deps import get_payment_gateway
from wingshop.services.catalog_service import CatalogService

router = APIRouter(tags=["catalogue"])


@router.get("", summary="List products")
def list_products(gateway=Depends(get_payment_gateway)):
    svc = CatalogService(gateway)
    items = svc.list_products()
    return {"items": [p.model_dump() for p in items], "total": len(items)}
