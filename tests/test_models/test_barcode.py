"""Tests for the inventory models."""

import uuid

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase

from shelfmark.core.errors import MalformedCode
from shelfmark.models import Assignment, Barcode, BarcodeStatus, Base, SizeBand, TimestampMixin


def test_base_is_declarative_base():
    """Base should be a SQLAlchemy DeclarativeBase."""
    assert hasattr(Base, "metadata")
    assert issubclass(Base, DeclarativeBase)
    assert hasattr(TimestampMixin, "created_at")


def test_tables_registered():
    assert {"size_bands", "barcodes", "barcode_assignments", "books"} <= set(Base.metadata.tables)


class TestBarcode:
    """Tests for Barcode."""

    def test_code_sets_series(self):
        barcode = Barcode(code="LGK001")
        assert barcode.code == "lgk001"
        assert barcode.series == "lgk"

    def test_malformed_code_rejected(self):
        with pytest.raises(MalformedCode):
            Barcode(code="lgk-001")

    @pytest.mark.asyncio
    async def test_defaults_to_available(self, session):
        barcode = Barcode(code="dgk001")
        session.add(barcode)
        await session.flush()

        assert barcode.status == BarcodeStatus.AVAILABLE.value
        assert barcode.is_available

    @pytest.mark.asyncio
    async def test_code_unique(self, session, seed_codes):
        await seed_codes("dgk001")
        session.add(Barcode(code="DGK001"))

        with pytest.raises(IntegrityError):
            await session.flush()


class TestSizeBand:
    def test_level_heights_default(self):
        assert SizeBand(name="gk", min_width=1, height_threshold=1, equal_heights=[]).level_heights() == {205, 210, 215}
        assert SizeBand(name="gk", min_width=1, height_threshold=1, equal_heights=[240]).level_heights() == {240}


class TestAssignment:
    """Partial unique indexes on open assignments."""

    @pytest.mark.asyncio
    async def test_one_open_assignment_per_code(self, session, seed_codes):
        (barcode,) = await seed_codes("dgk001")
        session.add(Assignment(barcode_id=barcode.id, code=barcode.code, book_id=uuid.uuid4()))
        await session.flush()
        session.add(Assignment(barcode_id=barcode.id, code=barcode.code, book_id=uuid.uuid4()))

        with pytest.raises(IntegrityError):
            await session.flush()

    @pytest.mark.asyncio
    async def test_one_open_assignment_per_book(self, session, seed_codes):
        first, second = await seed_codes("dgk001", "dgk002")
        book_id = uuid.uuid4()
        session.add(Assignment(barcode_id=first.id, code=first.code, book_id=book_id))
        await session.flush()
        session.add(Assignment(barcode_id=second.id, code=second.code, book_id=book_id))

        with pytest.raises(IntegrityError):
            await session.flush()
