"""Tests for library operations built on top of the database and storage."""

from __future__ import annotations

from pathlib import Path

import pytest

from lectern.config import AppConfig
from lectern.errors import ForbiddenError, NotFoundError, ValidationError
from lectern.library.database import Database
from lectern.library.models import HeartbeatRequest, HeartbeatResponse
from lectern.library.service import Library

OWNER_ID = 1
READER_ID = 2

# Character offsets of the chapters in the ``book_file`` fixture.
BOOK_OFFSETS = [0, 10, 21, 38]
BOOK_LENGTH = 55


def _import(library: Library, path: Path, **kwargs) -> int:
    content = library.import_book(OWNER_ID, path, **kwargs)
    return content.metadata.id


class TestImportBook:
    def test_records_book_and_chapters(self, library: Library, db: Database, book_file: Path):
        content = library.import_book(OWNER_ID, book_file, author="某人")
        book = db.get_book(content.metadata.id)
        assert book is not None
        assert book.title == "长夜"
        assert book.author == "某人"
        assert book.user_id == OWNER_ID

        chapters = db.list_chapters(book.id)
        assert [c.offset for c in chapters] == BOOK_OFFSETS
        assert [c.number for c in chapters] == [None, None, 1, 2]

    def test_text_stored_unchanged(self, library: Library, db: Database, config: AppConfig, book_file: Path):
        book = db.get_book(_import(library, book_file))
        stored = Path(book.file_path)
        assert stored.parent == config.book_dir
        assert stored.read_text(encoding="utf-8") == book_file.read_text(encoding="utf-8")

    def test_owner_progress_created_on_first_heartbeat(self, library: Library, db: Database, book_file: Path):
        book_id = _import(library, book_file)
        assert db.get_progress(OWNER_ID, book_id) is None
        resp = library.sync.heartbeat(OWNER_ID, HeartbeatRequest(book_id, 10, "A"), now=1000.0)
        assert resp == HeartbeatResponse(True, 10, 0)
        assert db.get_progress(OWNER_ID, book_id).last_device_id == "A"

    def test_title_override(self, library: Library, db: Database, book_file: Path):
        book_id = _import(library, book_file, title="  长夜行  ")
        assert db.get_book(book_id).title == "长夜行"

    def test_blank_title_rejected(self, library: Library, book_file: Path):
        with pytest.raises(ValidationError):
            library.import_book(OWNER_ID, book_file, title="   ")

    def test_unsupported_format(self, library: Library, tmp_path: Path):
        f = tmp_path / "book.epub"
        f.write_bytes(b"PK")
        with pytest.raises(ValidationError, match="Unsupported"):
            library.import_book(OWNER_ID, f)

    def test_upload_size_limit(self, tmp_path: Path, db: Database, users):
        config = AppConfig(data_dir=tmp_path / "d", config_dir=tmp_path / "c")
        config.max_upload_bytes = 16
        f = tmp_path / "big.txt"
        f.write_text("书名\n" + "字" * 100, encoding="utf-8")
        with pytest.raises(ValidationError, match="too large"):
            Library(config, db).import_book(OWNER_ID, f)
        assert list(config.book_dir.iterdir()) == []


class TestBookDetail:
    def test_owner_detail(self, library: Library, book_file: Path):
        book_id = _import(library, book_file)
        detail = library.book_detail(OWNER_ID, book_id)
        assert detail.book.id == book_id
        assert [c.title for c in detail.chapters] == ["长夜 作者：某人", "序章", "第一章 出城", "第二章 渡口"]
        assert detail.position == 0
        assert detail.progress_pct == 0.0

    def test_progress_reflects_heartbeats(self, library: Library, book_file: Path):
        book_id = _import(library, book_file)
        library.sync.heartbeat(OWNER_ID, HeartbeatRequest(book_id, 11, "A"), now=1000.0)
        library.sync.heartbeat(OWNER_ID, HeartbeatRequest(book_id, 22, "A"), now=1004.0)
        detail = library.book_detail(OWNER_ID, book_id)
        assert detail.position == 22
        assert detail.reading_time == 4
        assert detail.last_read_at == 1004.0
        assert detail.progress_pct == pytest.approx(22 / BOOK_LENGTH)

    def test_reader_of_public_book_gets_progress(self, library: Library, db: Database, book_file: Path):
        book_id = _import(library, book_file, is_public=True)
        assert db.get_progress(READER_ID, book_id) is None
        detail = library.book_detail(READER_ID, book_id)
        assert detail.position == 0
        assert db.get_progress(READER_ID, book_id) is not None

    def test_private_book_forbidden(self, library: Library, book_file: Path):
        book_id = _import(library, book_file)
        with pytest.raises(ForbiddenError):
            library.book_detail(READER_ID, book_id)

    def test_missing_book(self, library: Library):
        with pytest.raises(NotFoundError):
            library.book_detail(OWNER_ID, 999)


class TestReadContent:
    def test_slice_from_chapter_offset(self, library: Library, book_file: Path):
        book_id = _import(library, book_file)
        result = library.read_content(OWNER_ID, book_id, BOOK_OFFSETS[2])
        assert result.content.startswith("第一章 出城")
        assert result.next_position == BOOK_LENGTH

    def test_negative_position_clamped(self, library: Library, book_file: Path):
        book_id = _import(library, book_file)
        assert library.read_content(OWNER_ID, book_id, -10).content.startswith("长夜")

    def test_position_past_end(self, library: Library, book_file: Path):
        book_id = _import(library, book_file)
        with pytest.raises(ValidationError):
            library.read_content(OWNER_ID, book_id, BOOK_LENGTH)

    def test_length_clamped(self, library: Library, tmp_path: Path):
        f = tmp_path / "long.txt"
        f.write_text("书名\n" + "字" * 20000, encoding="utf-8")
        book_id = _import(library, f)

        big = library.read_content(OWNER_ID, book_id, 0, length=50000)
        assert len(big.content) == 10000
        assert big.next_position == 10000

        small = library.read_content(OWNER_ID, book_id, big.next_position, length=1)
        assert len(small.content) == 100
        assert small.next_position == 10100

    def test_private_book_forbidden(self, library: Library, book_file: Path):
        book_id = _import(library, book_file)
        with pytest.raises(ForbiddenError):
            library.read_content(READER_ID, book_id, 0)


class TestJumpToChapter:
    def test_returns_offset(self, library: Library, db: Database, book_file: Path):
        book_id = _import(library, book_file)
        chapters = db.list_chapters(book_id)
        assert library.jump_to_chapter(OWNER_ID, book_id, chapters[3].id) == BOOK_OFFSETS[3]

    def test_unknown_chapter(self, library: Library, book_file: Path):
        book_id = _import(library, book_file)
        with pytest.raises(NotFoundError):
            library.jump_to_chapter(OWNER_ID, book_id, 12345)


class TestDeleteBook:
    def test_owner_deletes(self, library: Library, db: Database, book_file: Path):
        book_id = _import(library, book_file)
        stored = Path(db.get_book(book_id).file_path)
        library.delete_book(OWNER_ID, book_id)
        assert not stored.exists()
        assert db.get_book(book_id) is None
        assert db.list_chapters(book_id) == []
        assert db.get_progress(OWNER_ID, book_id) is None

    def test_public_book_not_deletable_by_reader(self, library: Library, db: Database, book_file: Path):
        book_id = _import(library, book_file, is_public=True)
        with pytest.raises(ForbiddenError):
            library.delete_book(READER_ID, book_id)
        assert db.get_book(book_id) is not None


class TestListBooks:
    def test_most_recently_read_first(self, library: Library, book_file: Path):
        a = _import(library, book_file, title="甲")
        _import(library, book_file, title="乙")
        c = _import(library, book_file, title="丙")
        library.sync.heartbeat(OWNER_ID, HeartbeatRequest(a, 5, "A"), now=1000.0)
        library.sync.heartbeat(OWNER_ID, HeartbeatRequest(c, 9, "A"), now=2000.0)

        page = library.list_books(OWNER_ID)
        assert page.total == 3
        assert [item.book.title for item in page.books] == ["丙", "甲", "乙"]
        assert page.books[0].position == 9
        assert page.books[0].last_read_at == 2000.0
        assert page.books[2].last_read_at is None
        assert page.books[2].position == 0

    def test_unread_books_newest_first(self, library: Library, book_file: Path):
        _import(library, book_file, title="旧")
        _import(library, book_file, title="新")
        titles = [item.book.title for item in library.list_books(OWNER_ID).books]
        assert titles == ["新", "旧"]

    def test_pagination(self, library: Library, book_file: Path):
        for title in ("一", "二", "三"):
            _import(library, book_file, title=title)
        page = library.list_books(OWNER_ID, page=2, limit=2)
        assert page.total == 3
        assert [item.book.title for item in page.books] == ["一"]

    def test_only_own_books(self, library: Library, book_file: Path):
        _import(library, book_file, is_public=True)
        page = library.list_books(READER_ID)
        assert page.total == 0
        assert page.books == []

    def test_invalid_page(self, library: Library):
        with pytest.raises(ValidationError):
            library.list_books(OWNER_ID, page=0)


class TestUpdateBook:
    def test_updates_fields(self, library: Library, db: Database, book_file: Path):
        book_id = _import(library, book_file)
        library.update_book(OWNER_ID, book_id, title=" 新名 ", author="佚名", is_public=True)
        book = db.get_book(book_id)
        assert book.title == "新名"
        assert book.author == "佚名"
        assert book.is_public is True

    def test_partial_update(self, library: Library, db: Database, book_file: Path):
        book_id = _import(library, book_file, author="某人")
        library.update_book(OWNER_ID, book_id, is_public=True)
        book = db.get_book(book_id)
        assert book.title == "长夜"
        assert book.author == "某人"
        assert book.is_public is True

    def test_no_fields_is_noop(self, library: Library, db: Database, book_file: Path):
        book_id = _import(library, book_file)
        library.update_book(OWNER_ID, book_id)
        assert db.get_book(book_id).title == "长夜"

    def test_blank_title_rejected(self, library: Library, book_file: Path):
        book_id = _import(library, book_file)
        with pytest.raises(ValidationError):
            library.update_book(OWNER_ID, book_id, title="  ")

    def test_only_owner(self, library: Library, book_file: Path):
        book_id = _import(library, book_file, is_public=True)
        with pytest.raises(ForbiddenError):
            library.update_book(READER_ID, book_id, title="抢")

    def test_missing_book(self, library: Library):
        with pytest.raises(NotFoundError):
            library.update_book(OWNER_ID, 999, title="x")


class TestPublicBooks:
    def test_lists_only_public(self, library: Library, book_file: Path):
        _import(library, book_file, title="公开", is_public=True)
        _import(library, book_file, title="私藏")
        page = library.list_public_books()
        assert page.total == 1
        assert [item.book.title for item in page.books] == ["公开"]
        assert page.books[0].owner_username == "owner"

    def test_newest_first(self, library: Library, book_file: Path):
        _import(library, book_file, title="旧", is_public=True)
        _import(library, book_file, title="新", is_public=True)
        titles = [item.book.title for item in library.list_public_books().books]
        assert titles == ["新", "旧"]

    def test_random_bounded_by_available(self, library: Library, book_file: Path):
        _import(library, book_file, title="甲", is_public=True)
        _import(library, book_file, title="乙", is_public=True)
        _import(library, book_file, title="丙")
        picked = library.random_public_books(count=5)
        assert sorted(item.book.title for item in picked) == ["乙", "甲"]

    def test_random_defaults_to_one(self, library: Library, book_file: Path):
        _import(library, book_file, title="甲", is_public=True)
        _import(library, book_file, title="乙", is_public=True)
        assert len(library.random_public_books()) == 1
        assert len(library.random_public_books(count=0)) == 1

    def test_random_without_public_books(self, library: Library):
        assert library.random_public_books(count=3) == []
