# storefront/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        #order and its items go in one transaction
        try:
            self.db.add(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        return order

    def save(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_by_order_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.order_number == order_number)
        ).scalar_one_or_none()

    def get_by_merchant_order_id(self, merchant_order_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.merchant_order_id == merchant_order_id)
        ).scalar_one_or_none()

    def get_by_gateway_transaction_id(self, transaction_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.gateway_transaction_id == transaction_id)
        ).scalar_one_or_none()

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def list_orders(self, user_id: int | None = None, status: str | None = None) -> list[OrderModel]:
        query = select(OrderModel).options(selectinload(OrderModel.items))
        if user_id is not None:
            query = query.where(OrderModel.user_id == user_id)
        if status:
            query = query.where(OrderModel.status == status)
        #newest first, id breaks ties within the same timestamp
        query = query.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        return list(self.db.execute(query).scalars())
