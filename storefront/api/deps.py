from dataclasses import dataclass
from fastapi import Request
from sqlalchemy.orm import sessionmaker
from storefront.core.config import Settings
from storefront.kafka.producer import OrderEvents
from storefront.services import OrderIntake, OrderQuery, OrderWorkflow, SellerAnalytics
from storefront.store.base import OrderStore, ProductCatalog
from storefront.store.sql import SqlOrderStore, SqlProductCatalog

@dataclass
class Services:
    intake: OrderIntake
    query: OrderQuery
    workflow: OrderWorkflow
    analytics: SellerAnalytics
    events: OrderEvents

def build_services(settings: Settings, catalog: ProductCatalog, store: OrderStore) -> Services:
    events = OrderEvents(settings)
    return Services(
        intake=OrderIntake(catalog, store, events),
        query=OrderQuery(store),
        workflow=OrderWorkflow(store, events),
        analytics=SellerAnalytics(store, page_size=settings.ANALYTICS_PAGE_SIZE),
        events=events,
    )

def build_sql_services(settings: Settings, sessions: sessionmaker) -> Services:
    return build_services(settings, SqlProductCatalog(sessions), SqlOrderStore(sessions))

def get_services(request: Request) -> Services:
    return request.app.state.services
