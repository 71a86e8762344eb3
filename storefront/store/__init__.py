from storefront.store.base import OrderStore, ProductCatalog
from storefront.store.memory import MemoryCatalog, MemoryOrderStore
from storefront.store.sql import SqlOrderStore, SqlProductCatalog

__all__ = [
    "OrderStore",
    "ProductCatalog",
    "MemoryCatalog",
    "MemoryOrderStore",
    "SqlOrderStore",
    "SqlProductCatalog",
]
