from typing import Callable, Optional
from datetime import datetime
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, selectinload
import structlog

from storefront.core.errors import BusinessRuleError, StorageError
from storefront.db import models
from storefront.domain import LineItem, Order, OrderDraft, Product, ShippingAddress, utcnow

logger = structlog.get_logger(__name__)


class SqlProductCatalog:
    def __init__(self, sessions: sessionmaker):
        self._sessions = sessions

    def get(self, product_id: str) -> Optional[Product]:
        with self._sessions() as db:
            obj = db.get(models.Product, product_id)
            if not obj: return None
            return Product(id=obj.id, seller_id=obj.seller_id, name=obj.name, price=obj.price,
                           stock_quantity=obj.stock_quantity, is_active=obj.is_active)


def reservations(items) -> list[tuple[str, int]]:
    """One (product_id, quantity) per product, sorted by product id.

    Concurrent orders lock product rows in the same order and cannot deadlock.
    """
    wanted: dict[str, int] = {}
    for it in items:
        wanted[it.product_id] = wanted.get(it.product_id, 0) + it.quantity
    return sorted(wanted.items())


def _to_order(obj: models.Order) -> Order:
    items = [
        LineItem(
            id=it.id, order_id=it.order_id, product_id=it.product_id, quantity=it.quantity,
            price_at_time=it.price_at_time, created_at=it.created_at, color=it.color, size=it.size,
            product_name=it.product.name if it.product else None,
            seller_id=it.product.seller_id if it.product else None,
        )
        for it in obj.items
    ]
    address = ShippingAddress.model_validate(obj.shipping_address) if obj.shipping_address else None
    return Order(
        id=obj.id, order_number=obj.order_number, buyer_id=obj.buyer_id, status=obj.status,
        total=obj.total, created_at=obj.created_at, updated_at=obj.updated_at,
        shipping_fee=obj.shipping_fee, discount=obj.discount, payment_method=obj.payment_method,
        shipping_address=address, tracking_number=obj.tracking_number, notes=obj.notes, items=items,
    )


class SqlOrderStore:
    """Orders and line items in the relational store.

    ``create_with_items`` decrements product stock with a conditional UPDATE
    inside the same transaction as the order insert, so two buyers racing for
    the last unit cannot both commit. Rows are reserved in product id order,
    not submission order; ``position`` keeps the items as submitted.
    """

    def __init__(self, sessions: sessionmaker, clock: Callable[[], datetime] = utcnow):
        self._sessions = sessions
        self._clock = clock

    def create_with_items(self, draft: OrderDraft) -> str:
        now = self._clock()
        try:
            with self._sessions() as db, db.begin():
                for product_id, quantity in reservations(draft.items):
                    res = db.execute(
                        update(models.Product)
                        .where(
                            models.Product.id == product_id,
                            models.Product.is_active.is_(True),
                            models.Product.stock_quantity >= quantity,
                        )
                        .values(stock_quantity=models.Product.stock_quantity - quantity, updated_at=now)
                        .execution_options(synchronize_session=False)
                    )
                    if res.rowcount != 1:
                        raise BusinessRuleError(f'Insufficient stock for product {product_id}')

                order = models.Order(
                    id=models.new_id(),
                    order_number=models.new_order_number(),
                    buyer_id=draft.buyer_id,
                    status=draft.status,
                    total=draft.total,
                    shipping_fee=draft.shipping_fee,
                    discount=draft.discount,
                    payment_method=draft.payment_method,
                    shipping_address=draft.shipping_address.model_dump(mode='json') if draft.shipping_address else None,
                    notes=draft.notes,
                    created_at=now,
                    updated_at=now,
                )
                order.items = [
                    models.OrderItem(
                        id=models.new_id(), order_id=order.id, product_id=it.product_id, position=pos,
                        quantity=it.quantity, price_at_time=it.price_at_time, color=it.color, size=it.size,
                        created_at=now,
                    )
                    for pos, it in enumerate(draft.items)
                ]
                db.add(order)
                db.flush()
                order_id = order.id
        except IntegrityError as exc:
            logger.error('order_insert_rejected', buyer_id=draft.buyer_id, error=str(exc.orig))
            raise StorageError('Order could not be saved') from exc
        except SQLAlchemyError as exc:
            logger.error('order_transaction_failed', buyer_id=draft.buyer_id, error=str(exc))
            raise StorageError('Order could not be saved') from exc
        return order_id

    def _select_orders(self):
        return select(models.Order).options(
            selectinload(models.Order.items).selectinload(models.OrderItem.product)
        )

    def get_by_id(self, order_id: str) -> Optional[Order]:
        with self._sessions() as db:
            obj = db.execute(self._select_orders().where(models.Order.id == order_id)).scalar_one_or_none()
            return _to_order(obj) if obj else None

    def _page(self, condition, limit: int, offset: int) -> tuple[list[Order], int]:
        with self._sessions() as db:
            total = db.scalar(select(func.count()).select_from(models.Order).where(condition))
            stmt = (
                self._select_orders()
                .where(condition)
                .order_by(models.Order.created_at.desc(), models.Order.id.desc())
                .limit(limit)
                .offset(offset)
            )
            rows = db.execute(stmt).scalars().all()
            return [_to_order(r) for r in rows], total or 0

    def get_by_buyer(self, buyer_id: str, limit: int, offset: int) -> tuple[list[Order], int]:
        return self._page(models.Order.buyer_id == buyer_id, limit, offset)

    def get_by_seller(self, seller_id: str, limit: int, offset: int) -> tuple[list[Order], int]:
        # IN over the matching order ids yields each order once, however many items qualify
        sold = (
            select(models.OrderItem.order_id)
            .join(models.Product, models.Product.id == models.OrderItem.product_id)
            .where(models.Product.seller_id == seller_id)
        )
        return self._page(models.Order.id.in_(sold), limit, offset)

    def _update(self, order_id: str, values: dict, expected_status: Optional[str] = None) -> bool:
        stmt = update(models.Order).where(models.Order.id == order_id).execution_options(synchronize_session=False)
        if expected_status is not None:
            stmt = stmt.where(models.Order.status == expected_status)
        try:
            with self._sessions() as db, db.begin():
                res = db.execute(stmt.values(updated_at=self._clock(), **values))
                return res.rowcount == 1
        except SQLAlchemyError as exc:
            logger.error('order_update_failed', order_id=order_id, error=str(exc))
            raise StorageError(f'Order {order_id} could not be updated') from exc

    def update_status(self, order_id: str, status: str, expected_status: Optional[str] = None) -> bool:
        return self._update(order_id, {'status': status}, expected_status)

    def set_tracking_number(self, order_id: str, tracking_number: str) -> bool:
        return self._update(order_id, {'tracking_number': tracking_number})
