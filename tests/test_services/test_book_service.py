"""Tests for BookService registration and deletion."""

import uuid

import pytest
from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select

from shelfmark.core.errors import (
    BookAlreadyRegistered,
    BookNotFound,
    CodeAlreadyAssigned,
    InvalidDimensions,
    MalformedCode,
    PoolExhausted,
    SeriesMismatch,
)
from shelfmark.models import Assignment, Barcode, BarcodeStatus, Book, ReadingStatus
from shelfmark.schemas.book import BookCreate, BookRegistration
from shelfmark.services.book_service import BookService


async def _count(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestRegister:
    """Tests for register."""

    @pytest.mark.asyncio
    async def test_registers_with_best_code(self, session, bands, seed_codes):
        await seed_codes(("lgk001", 1), ("lgk002", 2))

        record = await BookService(session).register(BookCreate(title="Dune", width=12, height=21))

        assert record.code == "lgk001"
        assert record.series == "lgk"
        assert record.book.reading_status == ReadingStatus.IN_PROGRESS.value
        assert record.book.registered_at is not None
        assert (record.book.width_mm, record.book.height_mm) == (120, 210)

    @pytest.mark.asyncio
    async def test_legacy_field_names(self, session, bands, seed_codes):
        await seed_codes("lgk001", "lgk002")
        payload = BookCreate.model_validate({"BBreite": "12", "BHoehe": "21", "BMarkb": "LGK002"})

        record = await BookService(session).register(payload)

        assert record.code == "lgk002"

    @pytest.mark.asyncio
    async def test_draft_has_no_code(self, session, bands, seed_codes):
        await seed_codes("lgk001")

        record = await BookService(session).register(BookCreate(title="Draft", assign_barcode=False))

        assert record.code is None
        assert record.book.reading_status == ReadingStatus.IN_STOCK.value
        assert record.book.registered_at is None
        assert await _count(session, Assignment) == 0

    @pytest.mark.asyncio
    async def test_request_id_makes_registration_idempotent(self, session, bands, seed_codes):
        await seed_codes("lgk001", "lgk002")
        service = BookService(session)
        payload = BookCreate(title="Dune", width=12, height=21, request_id="req-1")

        first = await service.register(payload)
        second = await service.register(payload)

        assert second.created is False
        assert second.book.id == first.book.id
        assert second.code == first.code
        assert await _count(session, Book) == 1

    @pytest.mark.asyncio
    async def test_exhaustion_rolls_back_book(self, session, bands):
        with pytest.raises(PoolExhausted):
            await BookService(session).register(BookCreate(title="Dune", width=12, height=21))

        assert await _count(session, Book) == 0
        assert await _count(session, Assignment) == 0

    @pytest.mark.asyncio
    async def test_exact_code_outside_allowed_series(self, session, bands, seed_codes):
        await seed_codes("dgk001")

        with pytest.raises(SeriesMismatch):
            await BookService(session).register(BookCreate(width=12, height=21, barcode="dgk001"))

        assert await _count(session, Book) == 0
        assert (await session.execute(select(Barcode.status))).scalar_one() == BarcodeStatus.AVAILABLE.value

    @pytest.mark.asyncio
    async def test_taken_exact_code_rolls_back(self, session, bands, seed_codes):
        await seed_codes("lgk001")
        service = BookService(session)
        await service.register(BookCreate(width=12, height=21, barcode="lgk001"))

        with pytest.raises(CodeAlreadyAssigned):
            await service.register(BookCreate(width=12, height=21, barcode="lgk001"))

        assert await _count(session, Book) == 1

    @pytest.mark.asyncio
    async def test_validation_happens_before_writes(self, session, bands):
        service = BookService(session)

        with pytest.raises(MalformedCode):
            await service.register(BookCreate(width=12, height=21, barcode="12-ab"))
        with pytest.raises(InvalidDimensions):
            await service.register(BookCreate(width=12))

        assert await _count(session, Book) == 0

    @pytest.mark.asyncio
    async def test_replay_rebuilds_series_and_fallback(self, session, bands, seed_codes):
        await seed_codes("dik001")
        service = BookService(session)
        payload = BookCreate(width=14, height=15, request_id="req-fallback")

        first = await service.register(payload)
        second = await service.register(payload)

        assert (first.series, first.fallback_used) == ("di", True)
        assert (second.code, second.series, second.fallback_used) == ("dik001", "di", True)

    @pytest.mark.asyncio
    async def test_concurrent_request_id_returns_winner(self, session, bands, seed_codes, monkeypatch):
        await seed_codes("lgk001", "lgk002")
        service = BookService(session)
        payload = BookCreate(title="Dune", width=12, height=21, request_id="req-race")
        winner = await service.register(payload)
        winner_id = winner.book.id

        # the losing request looked before the winner committed
        lookup = service._find_by_request_id
        calls: list[str] = []

        async def miss_once(request_id):
            calls.append(request_id)
            if len(calls) == 1:
                return None
            return await lookup(request_id)

        monkeypatch.setattr(service, "_find_by_request_id", miss_once)

        loser = await service.register(payload)

        assert loser.created is False
        assert loser.book.id == winner_id
        assert loser.code == "lgk001"
        assert await _count(session, Book) == 1
        assert await _count(session, Assignment) == 1

    @pytest.mark.asyncio
    async def test_exact_code_requires_dimensions(self, session, bands, seed_codes):
        await seed_codes("ork001")

        with pytest.raises(InvalidDimensions):
            await BookService(session).register(BookCreate(barcode="ork001"))

        assert await _count(session, Book) == 0
        assert (await session.execute(select(Barcode.status))).scalar_one() == BarcodeStatus.AVAILABLE.value


class TestRegisterExisting:
    """Tests for register_existing."""

    @pytest.mark.asyncio
    async def test_registers_draft_with_stored_dimensions(self, session, bands, seed_codes):
        await seed_codes("lgk001")
        service = BookService(session)
        draft = await service.register(BookCreate(width=12, height=21, assign_barcode=False))

        record = await service.register_existing(draft.book.id, BookRegistration())

        assert record.code == "lgk001"
        assert record.book.reading_status == ReadingStatus.IN_PROGRESS.value

    @pytest.mark.asyncio
    async def test_already_registered(self, session, bands, seed_codes):
        await seed_codes("lgk001", "lgk002")
        service = BookService(session)
        record = await service.register(BookCreate(width=12, height=21))

        with pytest.raises(BookAlreadyRegistered):
            await service.register_existing(record.book.id, BookRegistration())

    @pytest.mark.asyncio
    async def test_unknown_book(self, session, bands):
        with pytest.raises(BookNotFound):
            await BookService(session).register_existing(uuid.uuid4(), BookRegistration(width=12, height=21))


    @pytest.mark.asyncio
    async def test_draft_without_dimensions(self, session, bands, seed_codes):
        await seed_codes("ork001")
        service = BookService(session)
        draft = await service.register(BookCreate(title="Draft", assign_barcode=False))

        with pytest.raises(InvalidDimensions):
            await service.register_existing(draft.book.id, BookRegistration(barcode="ork001"))

        assert await _count(session, Assignment) == 0


class TestDelete:
    """Tests for delete."""

    @pytest.mark.asyncio
    async def test_delete_frees_code_for_next_book(self, session, bands, seed_codes):
        await seed_codes("dgk007")
        service = BookService(session)
        record = await service.register(BookCreate(width=12, height=15))

        freed = await service.delete(record.book.id)

        assert freed == ["dgk007"]
        assert await _count(session, Book) == 0
        history = (await session.execute(select(Assignment))).scalars().all()
        assert len(history) == 1
        assert history[0].freed_at is not None

        again = await service.register(BookCreate(width=12, height=15))
        assert again.code == "dgk007"

    @pytest.mark.asyncio
    async def test_delete_draft(self, session):
        service = BookService(session)
        draft = await service.register(BookCreate(title="Draft", assign_barcode=False))

        assert await service.delete(draft.book.id) == []

    @pytest.mark.asyncio
    async def test_delete_unknown_is_noop(self, session):
        assert await BookService(session).delete(uuid.uuid4()) == []

    @pytest.mark.asyncio
    async def test_delete_twice(self, session, bands, seed_codes):
        await seed_codes("dgk007")
        service = BookService(session)
        record = await service.register(BookCreate(width=12, height=15))

        assert await service.delete(record.book.id) == ["dgk007"]
        assert await service.delete(record.book.id) == []

    @pytest.mark.asyncio
    async def test_delete_closes_assignment_of_missing_book(self, session, bands, seed_codes):
        await seed_codes("dgk007")
        service = BookService(session)
        record = await service.register(BookCreate(width=12, height=15))
        book_id = record.book.id
        await session.execute(sa_delete(Book).where(Book.id == book_id))
        await session.commit()

        assert await service.delete(book_id) == ["dgk007"]
        assert (await session.execute(select(Barcode.status))).scalar_one() == BarcodeStatus.AVAILABLE.value
