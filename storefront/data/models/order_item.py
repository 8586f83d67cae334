from sqlalchemy import CheckConstraint, Column, Integer, ForeignKey
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    product_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    #price captured when the order was placed, never updated afterwards
    unit_price = Column(Integer, nullable=False)

    order = relationship("OrderModel", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_item_quantity"),
        CheckConstraint("unit_price >= 0", name="ck_order_item_unit_price"),
    )

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity
