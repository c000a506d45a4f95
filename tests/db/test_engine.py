"""Tests for engine and session management."""

from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from pos_kernel.db.engine import (
    get_engine,
    get_session,
    reset_engine,
    session_scope,
    supports_row_locks,
)
from pos_modules.stock_take.orm import ProductModel, ProductStockLocationModel


class TestUninitialized:

    def test_accessors_raise(self):
        reset_engine()

        with pytest.raises(RuntimeError, match="not initialized"):
            get_engine()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_session()

    def test_no_row_locks_without_engine(self):
        reset_engine()
        assert supports_row_locks() is False


class TestSessionScope:

    def test_commits_on_success(self, engine, test_actor_id):
        with session_scope() as s:
            s.add(ProductModel(name="Cola", sku="SKU-COLA", created_by_id=test_actor_id))

        with session_scope() as s:
            assert s.execute(select(ProductModel.sku)).scalars().all() == ["SKU-COLA"]

    def test_rolls_back_on_error(self, engine, test_actor_id):
        with pytest.raises(RuntimeError, match="boom"):
            with session_scope() as s:
                s.add(ProductModel(name="Cola", sku="SKU-COLA", created_by_id=test_actor_id))
                s.flush()
                raise RuntimeError("boom")

        with session_scope() as s:
            assert s.execute(select(ProductModel)).first() is None


class TestSqliteBackend:

    def test_row_locks_reported(self, engine):
        assert supports_row_locks() is (engine.dialect.name == "postgresql")

    def test_foreign_keys_enforced(self, session, test_actor_id):
        session.add(ProductStockLocationModel(
            product_id=uuid4(),
            location="Main Store",
            quantity=1,
            created_by_id=test_actor_id,
        ))

        with pytest.raises(IntegrityError):
            session.flush()
