# order_service/models.py

"""
SQLAlchemy database models for the Order Service.
These tables hold the persisted copy of the dataset; the service works on the
in-memory dataset and rewrites these rows after every mutation.
"""

from sqlalchemy import Column, Date, Float, Integer, String

from .db import Base


class Product(Base):
    """
    SQLAlchemy model for the 'products' table.
    """

    __tablename__ = "products"

    # Identifiers come from the dataset, never generated by the database.
    id = Column(Integer, primary_key=True, autoincrement=False)

    name = Column(String(255), nullable=False)

    price = Column(Float, nullable=False)

    stock = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"


class Order(Base):
    """
    SQLAlchemy model for the 'orders' table.
    product_id is not a foreign key: orders may outlive their product.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=False)
    product_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    total_amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, index=True)
    created_at = Column(Date, nullable=False)

    def __repr__(self):
        return f"<Order(id={self.id}, product_id={self.product_id}, status='{self.status}')>"


class DatasetMeta(Base):
    """
    Single-row table holding dataset-wide counters.
    """

    __tablename__ = "dataset_meta"

    id = Column(Integer, primary_key=True, autoincrement=False)
    next_order_id = Column(Integer, nullable=False)
