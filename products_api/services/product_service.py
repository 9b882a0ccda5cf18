from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from products_api.config import get_settings
from products_api.models.product import Product
from products_api.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)


class ProductNotFoundError(Exception):
    """Exception raised when no product row matches the requested ID."""
    pass


class StorageError(Exception):
    """Exception raised when the database rejects or fails a statement."""
    pass


class ProductService:
    """
    Data access for the products table.

    Every operation issues a single parameterized statement (plus a read-back
    where the result has to be returned) and commits it on its own. Failures
    are reported as:
    - ProductNotFoundError when no row matches the given ID
    - StorageError for anything the database itself reports
    """

    def __init__(self, db: Session, default_page_size: Optional[int] = None):
        self.db = db
        self.default_page_size = default_page_size or get_settings().DEFAULT_PAGE_SIZE

    def get_products(self, start: int = 0, count: Optional[int] = None) -> List[Product]:
        """
        Get a page of products ordered by ID.

        Args:
            start: Number of rows to skip
            count: Maximum number of rows to return (default page size if None)

        Returns:
            List of products, empty when the table has no rows in range
        """
        if count is None:
            count = self.default_page_size

        try:
            query = select(Product).order_by(Product.id).offset(start).limit(count)
            return list(self.db.scalars(query))
        except SQLAlchemyError as e:
            raise self._storage_error("listing products", e)

    def get_product(self, product_id: int) -> Product:
        """
        Get a product by ID.

        Raises:
            ProductNotFoundError: If no row has this ID
            StorageError: If the query fails
        """
        try:
            product = self.db.get(Product, product_id)
        except SQLAlchemyError as e:
            raise self._storage_error(f"fetching product #{product_id}", e)

        if product is None:
            logger.warning(f"Product #{product_id} not found")
            raise ProductNotFoundError(f"Product with ID {product_id} not found")

        return product

    def create_product(self, product_data: ProductCreate) -> Product:
        """
        Insert a new product. The database assigns the ID, which is
        read back into the returned instance.
        """
        product = Product(name=product_data.name, price=product_data.price)

        try:
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
        except SQLAlchemyError as e:
            raise self._storage_error("creating product", e)

        logger.info(f"Product #{product.id} created")
        return product

    def update_product(self, product_id: int, product_data: ProductUpdate) -> Product:
        """
        Update name and/or price of a product. Only fields present in the
        payload are written; the ID never changes.

        Returns:
            The product as stored after the update

        Raises:
            ProductNotFoundError: If zero rows were affected
            StorageError: If the statement fails
        """
        changes = product_data.changes()
        if not changes:
            return self.get_product(product_id)

        try:
            result = self.db.execute(
                update(Product).where(Product.id == product_id).values(**changes)
            )
            if result.rowcount == 0:
                self.db.rollback()
                logger.warning(f"Update matched no product #{product_id}")
                raise ProductNotFoundError(f"Product with ID {product_id} not found")
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._storage_error(f"updating product #{product_id}", e)

        logger.info(f"Product #{product_id} updated: {sorted(changes)}")
        return self.get_product(product_id)

    def delete_product(self, product_id: int) -> None:
        """
        Delete a product.

        Raises:
            ProductNotFoundError: If zero rows were affected
            StorageError: If the statement fails
        """
        try:
            result = self.db.execute(delete(Product).where(Product.id == product_id))
            if result.rowcount == 0:
                self.db.rollback()
                logger.warning(f"Delete matched no product #{product_id}")
                raise ProductNotFoundError(f"Product with ID {product_id} not found")
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._storage_error(f"deleting product #{product_id}", e)

        logger.info(f"Product #{product_id} deleted")

    def _storage_error(self, action: str, error: SQLAlchemyError) -> StorageError:
        """Roll back the failed statement and wrap the driver's message."""
        self.db.rollback()
        message = str(getattr(error, "orig", None) or error)
        logger.error(f"Error {action}: {message}")
        return StorageError(message)
