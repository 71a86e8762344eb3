from fastapi import APIRouter, Depends
from typing import Optional
from storefront.api.deps import Services, get_services
from storefront.core.auth import get_current_identity, require_seller
from storefront.domain import Identity
from storefront.schemas import (
    AnalyticsRead, OrderCreate, OrderPageRead, OrderRead, StatusUpdate, TrackingUpdate,
)
from storefront.services.query import OrderPage

orders_router = APIRouter()
seller_router = APIRouter()

def _page(page: OrderPage) -> OrderPageRead:
    return OrderPageRead(
        orders=[OrderRead.model_validate(o) for o in page.orders],
        total=page.total, limit=page.limit, offset=page.offset,
    )

@orders_router.post("", response_model=OrderRead, status_code=201)
def create_order(payload: OrderCreate, identity: Identity = Depends(get_current_identity),
                 svc: Services = Depends(get_services)):
    order = svc.intake.place_order(
        buyer_id=identity.subject,
        items=[it.to_cart_line() for it in payload.items],
        shipping_address=payload.shipping_address,
        payment_method=payload.payment_method,
        notes=payload.notes,
    )
    return OrderRead.model_validate(order)

@orders_router.get("/my-orders", response_model=OrderPageRead)
def my_orders(limit: Optional[int] = None, offset: Optional[int] = None,
              identity: Identity = Depends(get_current_identity), svc: Services = Depends(get_services)):
    return _page(svc.query.buyer_orders(identity.subject, limit, offset))

@orders_router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: str, identity: Identity = Depends(get_current_identity),
              svc: Services = Depends(get_services)):
    return OrderRead.model_validate(svc.query.get_order(order_id, identity))

@orders_router.post("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(order_id: str, identity: Identity = Depends(get_current_identity),
                 svc: Services = Depends(get_services)):
    return OrderRead.model_validate(svc.workflow.cancel(order_id, identity))

@seller_router.get("/orders", response_model=OrderPageRead)
def seller_orders(limit: Optional[int] = None, offset: Optional[int] = None,
                  identity: Identity = Depends(require_seller), svc: Services = Depends(get_services)):
    return _page(svc.query.seller_orders(identity.subject, limit, offset))

@seller_router.get("/analytics", response_model=AnalyticsRead)
def seller_analytics(identity: Identity = Depends(require_seller), svc: Services = Depends(get_services)):
    return AnalyticsRead.model_validate(svc.analytics.summarize(identity.subject))

@seller_router.patch("/orders/{order_id}/status", response_model=OrderRead)
def update_status(order_id: str, payload: StatusUpdate, identity: Identity = Depends(require_seller),
                  svc: Services = Depends(get_services)):
    return OrderRead.model_validate(svc.workflow.change_status(order_id, payload.status, identity))

@seller_router.patch("/orders/{order_id}/tracking", response_model=OrderRead)
def update_tracking(order_id: str, payload: TrackingUpdate, identity: Identity = Depends(require_seller),
                    svc: Services = Depends(get_services)):
    return OrderRead.model_validate(svc.workflow.set_tracking_number(order_id, payload.tracking_number, identity))
