from sqlalchemy import Column, Integer, Numeric, Text, text

from products_api.database import Base


class Product(Base):
    """
    Product model, the single table behind the API.

    Attributes:
        id: Unique identifier, assigned by the database sequence
        name: Product name
        price: Product price with two fractional digits (defaults to 0.00)
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0, server_default=text("0.00"))

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"
