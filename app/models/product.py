"""ORM model for products, the single managed resource."""

from sqlalchemy import CheckConstraint, Column, Integer, Numeric, String

from app.models.base import Base


class Product(Base):
    """Product record; id is assigned by the database on insert and never changes."""

    __tablename__ = "products"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_products_price_non_negative"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(18, 2), nullable=False)

    def __repr__(self) -> str:
        return f"Product(id={self.id!r}, name={self.name!r}, price={self.price!r})"
