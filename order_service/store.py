"""
Dataset ownership and persistence.

The DatasetStore owns the in-memory dataset for the lifetime of the process.
Storage backends only know how to load and save a whole Dataset.
"""
import copy
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from . import models
from .db import Base, make_session_factory
from .domain import Dataset, Order, OrderStatus, Product
from .errors import StorageError
from .schemas import DatasetDocument

logger = logging.getLogger(__name__)

META_ROW_ID = 1


class StorageBackend(ABC):
    @abstractmethod
    def load(self) -> Dataset:
        """Return the whole persisted dataset."""

    @abstractmethod
    def save(self, dataset: Dataset) -> None:
        """Replace the persisted dataset with the given one."""


class SqlStorageBackend(StorageBackend):
    """
    Keeps the dataset in three tables: products, orders and dataset_meta.
    Every save rewrites all rows inside one transaction.
    """

    def __init__(self, engine):
        self.engine = engine
        self.session_factory = make_session_factory(engine)

    def create_tables(self):
        Base.metadata.create_all(bind=self.engine)

    def is_empty(self) -> bool:
        with self.session_factory() as session:
            has_products = session.execute(select(models.Product.id).limit(1)).first()
            has_orders = session.execute(select(models.Order.id).limit(1)).first()
        return has_products is None and has_orders is None

    def load(self) -> Dataset:
        with self.session_factory() as session:
            product_rows = session.scalars(select(models.Product).order_by(models.Product.id)).all()
            order_rows = session.scalars(select(models.Order).order_by(models.Order.id)).all()
            meta = session.get(models.DatasetMeta, META_ROW_ID)
            return Dataset(
                products=[
                    Product(id=row.id, name=row.name, price=row.price, stock=row.stock)
                    for row in product_rows
                ],
                orders=[
                    Order(
                        id=row.id,
                        product_id=row.product_id,
                        quantity=row.quantity,
                        total_amount=row.total_amount,
                        status=OrderStatus(row.status),
                        created_at=row.created_at,
                    )
                    for row in order_rows
                ],
                next_order_id=meta.next_order_id if meta else None,
            )

    def save(self, dataset: Dataset) -> None:
        with self.session_factory() as session:
            with session.begin():
                session.query(models.Order).delete()
                session.query(models.Product).delete()
                session.query(models.DatasetMeta).delete()
                session.add_all(
                    models.Product(id=p.id, name=p.name, price=p.price, stock=p.stock)
                    for p in dataset.products
                )
                session.add_all(
                    models.Order(
                        id=o.id,
                        product_id=o.product_id,
                        quantity=o.quantity,
                        total_amount=o.total_amount,
                        status=o.status.value,
                        created_at=o.created_at,
                    )
                    for o in dataset.orders
                )
                session.add(models.DatasetMeta(id=META_ROW_ID, next_order_id=dataset.next_order_id))


class JsonStorageBackend(StorageBackend):
    """
    Keeps the dataset in a single JSON document:
    {"products": [...], "orders": [...], "nextOrderId": n}
    """

    def __init__(self, path):
        self.path = path

    def load(self) -> Dataset:
        if not os.path.exists(self.path):
            logger.info(f"Data file {self.path} does not exist yet; starting with an empty dataset.")
            return Dataset()
        return load_document(self.path).to_dataset()

    def save(self, dataset: Dataset) -> None:
        payload = DatasetDocument.from_dataset(dataset).model_dump(mode="json", by_alias=True)
        directory = os.path.dirname(os.path.abspath(self.path))
        # Write next to the target and rename, so readers never see a half-written file.
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            os.unlink(tmp_path)
            raise


def load_document(path) -> DatasetDocument:
    with open(path, encoding="utf-8") as fh:
        return DatasetDocument.model_validate(json.load(fh))


class DatasetStore:
    """
    Owns the in-memory dataset and serialises access to it.

    Reads hold the lock for the duration of the fold. Mutations run inside
    transaction(): the dataset is snapshotted, mutated, then saved; if anything
    raises, the snapshot is put back and nothing is persisted.
    """

    def __init__(self, backend: StorageBackend, dataset: Optional[Dataset] = None):
        self.backend = backend
        self._dataset = dataset
        self._lock = threading.RLock()

    def load(self) -> Dataset:
        with self._lock:
            self._dataset = self.backend.load()
            logger.info(
                f"Loaded dataset: {len(self._dataset.products)} products, "
                f"{len(self._dataset.orders)} orders."
            )
            return self._dataset

    @property
    def dataset(self) -> Dataset:
        if self._dataset is None:
            raise RuntimeError("Dataset has not been loaded.")
        return self._dataset

    @contextmanager
    def reading(self) -> Iterator[Dataset]:
        with self._lock:
            yield self.dataset

    @contextmanager
    def transaction(self) -> Iterator[Dataset]:
        with self._lock:
            snapshot = copy.deepcopy(self.dataset)
            try:
                yield self._dataset
                self.backend.save(self._dataset)
            except (SQLAlchemyError, OSError) as e:
                self._dataset = snapshot
                logger.error(f"Error saving dataset: {e}", exc_info=True)
                raise StorageError("Could not save changes.") from e
            except Exception:
                self._dataset = snapshot
                raise
