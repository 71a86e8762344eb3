from storefront.services.analytics import SellerAnalytics, SellerSummary
from storefront.services.intake import OrderIntake
from storefront.services.query import OrderPage, OrderQuery, normalize_page
from storefront.services.status import OrderWorkflow

__all__ = [
    "OrderIntake",
    "OrderPage",
    "OrderQuery",
    "OrderWorkflow",
    "SellerAnalytics",
    "SellerSummary",
    "normalize_page",
]
