"""
Read-only product lookups.
"""
import logging
from dataclasses import replace
from typing import List

from .domain import Product
from .errors import NotFoundError
from .store import DatasetStore

logger = logging.getLogger(__name__)


class Catalog:
    def __init__(self, store: DatasetStore):
        self.store = store

    def list_products(self) -> List[Product]:
        with self.store.reading() as dataset:
            return [replace(p) for p in dataset.products]

    def get_product(self, product_id: int) -> Product:
        with self.store.reading() as dataset:
            product = dataset.find_product(product_id)
            if product is None:
                logger.warning(f"Product with ID: {product_id} not found.")
                raise NotFoundError("Product not found")
            return replace(product)
