"""
Service layer tests for gallery-api.

Exercises GalleryService against a real SQLite database and a fake media
host, without any HTTP concerns.
"""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from gallery_api.core.config import settings
from gallery_api.core.errors import ErrorCode, ServiceError
from gallery_api.db.models import Gallery
from gallery_api.services.gallery_service import GalleryService, remove_urls
from tests.fakes import FakeMediaHost


async def _gallery_count(session) -> int:
    return (await session.execute(select(func.count(Gallery.id)))).scalar_one()


# ============================================================================
# Create Gallery
# ============================================================================

@pytest.mark.unit
async def test_create_gallery_success(service, media_host, db_session):
    """Hosted URLs are stored in input order, one per payload."""
    payloads = [
        "https://example.com/a.jpg",
        "https://example.com/b.jpg",
        "https://example.com/c.jpg",
    ]

    gallery = await service.create_gallery("Spring Trip", payloads)

    assert gallery.id
    assert gallery.title == "Spring Trip"
    assert gallery.images == [FakeMediaHost.url_for(p) for p in payloads]
    assert gallery.created_at is not None
    assert sorted(media_host.uploads) == sorted(payloads)
    assert await _gallery_count(db_session) == 1


@pytest.mark.unit
async def test_create_gallery_records_public_ids(service):
    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg"])

    url = gallery.images[0]
    assert gallery.public_ids == {url: FakeMediaHost.public_id_for("https://example.com/a.jpg")}


@pytest.mark.unit
async def test_create_gallery_keeps_order_when_uploads_finish_out_of_order(service, media_host):
    """The slowest upload is first in the input and stays first in the result."""
    payloads = ["https://example.com/slow.jpg", "https://example.com/fast.jpg"]
    media_host.delays["https://example.com/slow.jpg"] = 0.05

    gallery = await service.create_gallery("Ordered", payloads)

    assert media_host.uploads == ["https://example.com/fast.jpg", "https://example.com/slow.jpg"]
    assert gallery.images == [FakeMediaHost.url_for(p) for p in payloads]


@pytest.mark.unit
async def test_create_gallery_accepts_data_uri(service, media_host, png_data_uri):
    gallery = await service.create_gallery("Inline", [png_data_uri])

    assert len(gallery.images) == 1
    assert gallery.images[0] != png_data_uri
    assert media_host.uploads == [png_data_uri]


@pytest.mark.unit
@pytest.mark.parametrize("title", [None, 42, "", "   ", ["Trip"]])
async def test_create_gallery_invalid_title(service, media_host, db_session, title):
    with pytest.raises(ServiceError) as exc_info:
        await service.create_gallery(title, ["https://example.com/a.jpg"])

    assert exc_info.value.code == ErrorCode.VAL_INVALID_TITLE
    assert exc_info.value.http_status == 400
    assert media_host.uploads == []
    assert await _gallery_count(db_session) == 0


@pytest.mark.unit
@pytest.mark.parametrize(
    "images",
    [
        None,
        [],
        "https://example.com/a.jpg",
        {"url": "https://example.com/a.jpg"},
        [123],
        [""],
        ["/etc/passwd"],
        ["ftp://example.com/a.jpg"],
        ["data:text/plain;base64,aGVsbG8="],
        ["data:image/png;base64,not-base64!!"],
    ],
)
async def test_create_gallery_invalid_images(service, media_host, db_session, images):
    """Bad payloads are rejected before the media host or store is touched."""
    with pytest.raises(ServiceError) as exc_info:
        await service.create_gallery("Trip", images)

    assert exc_info.value.code == ErrorCode.VAL_INVALID_IMAGES
    assert exc_info.value.http_status == 400
    assert media_host.uploads == []
    assert await _gallery_count(db_session) == 0


@pytest.mark.unit
async def test_create_gallery_too_many_images(service, media_host, monkeypatch):
    monkeypatch.setattr(settings, "MAX_IMAGES_PER_REQUEST", 2)

    with pytest.raises(ServiceError) as exc_info:
        await service.create_gallery("Trip", [f"https://example.com/{i}.jpg" for i in range(3)])

    assert exc_info.value.code == ErrorCode.VAL_INVALID_IMAGES
    assert exc_info.value.error_details["max_images"] == 2
    assert media_host.uploads == []


@pytest.mark.unit
async def test_create_gallery_upload_failure_creates_nothing(service, media_host, db_session):
    """One failed upload fails the whole request; no row is written."""
    media_host.fail_uploads.add("https://example.com/bad.jpg")

    with pytest.raises(ServiceError) as exc_info:
        await service.create_gallery(
            "Trip",
            ["https://example.com/good.jpg", "https://example.com/bad.jpg"],
        )

    error = exc_info.value
    assert error.code == ErrorCode.MEDIA_UPLOAD_FAILED
    assert error.http_status == 500
    assert "rejected" in error.error_details["error"]
    assert await _gallery_count(db_session) == 0


@pytest.mark.unit
async def test_create_gallery_store_failure(service):
    with patch.object(
        service.repository,
        "create_gallery",
        side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")),
    ):
        with pytest.raises(ServiceError) as exc_info:
            await service.create_gallery("Trip", ["https://example.com/a.jpg"])

    assert exc_info.value.code == ErrorCode.STORE_OPERATION_FAILED
    assert exc_info.value.http_status == 500


# ============================================================================
# List / Fetch
# ============================================================================

@pytest.mark.unit
async def test_list_galleries_oldest_first(service):
    """Galleries created within the same second still list in creation order."""
    assert await service.list_galleries() == []

    created = [
        await service.create_gallery(f"Gallery {i}", [f"https://example.com/{i}.jpg"])
        for i in range(8)
    ]

    galleries = await service.list_galleries()
    assert [g.id for g in galleries] == [g.id for g in created]


@pytest.mark.unit
async def test_list_galleries_store_failure(service):
    with patch.object(
        service.repository,
        "list_all",
        side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
    ):
        with pytest.raises(ServiceError) as exc_info:
            await service.list_galleries()

    assert exc_info.value.code == ErrorCode.STORE_OPERATION_FAILED


@pytest.mark.unit
async def test_get_gallery_round_trips_created_record(service, session_factory, media_host):
    created = await service.create_gallery("Trip", ["https://example.com/a.jpg", "https://example.com/b.jpg"])

    # Fresh session so the row is read back from the database
    async with session_factory() as session:
        fetched = await GalleryService(session, media_host).get_gallery(created.id)

    assert fetched.id == created.id
    assert fetched.title == created.title
    assert fetched.images == created.images


@pytest.mark.unit
async def test_get_gallery_not_found(service):
    with pytest.raises(ServiceError) as exc_info:
        await service.get_gallery("missing-id")

    error = exc_info.value
    assert error.code == ErrorCode.GALLERY_NOT_FOUND
    assert error.http_status == 404
    assert error.user_message == "Gallery not found"


# ============================================================================
# Append Images
# ============================================================================

@pytest.mark.unit
async def test_append_images_preserves_existing_order(service):
    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg"])
    original = list(gallery.images)

    batch_a = ["https://example.com/b.jpg", "https://example.com/c.jpg"]
    batch_b = ["https://example.com/d.jpg"]

    await service.append_images(gallery.id, batch_a)
    updated = await service.append_images(gallery.id, batch_b)

    assert updated.images == original + [FakeMediaHost.url_for(p) for p in batch_a + batch_b]
    assert updated.version == 3


@pytest.mark.unit
async def test_append_images_does_not_deduplicate(service):
    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg"])

    updated = await service.append_images(gallery.id, ["https://example.com/a.jpg"])

    assert updated.images == [FakeMediaHost.url_for("https://example.com/a.jpg")] * 2


@pytest.mark.unit
async def test_append_images_not_found_uploads_nothing(service, media_host):
    with pytest.raises(ServiceError) as exc_info:
        await service.append_images("missing-id", ["https://example.com/a.jpg"])

    assert exc_info.value.code == ErrorCode.GALLERY_NOT_FOUND
    assert media_host.uploads == []


@pytest.mark.unit
@pytest.mark.parametrize("images", [None, [], "https://example.com/a.jpg"])
async def test_append_images_invalid_images(service, media_host, images):
    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg"])
    media_host.uploads.clear()

    with pytest.raises(ServiceError) as exc_info:
        await service.append_images(gallery.id, images)

    assert exc_info.value.code == ErrorCode.VAL_INVALID_IMAGES
    assert media_host.uploads == []
    assert (await service.get_gallery(gallery.id)).images == gallery.images


@pytest.mark.unit
async def test_append_images_upload_failure_leaves_gallery_unchanged(service, media_host, session_factory):
    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg"])
    media_host.fail_uploads.add("https://example.com/bad.jpg")

    with pytest.raises(ServiceError) as exc_info:
        await service.append_images(gallery.id, ["https://example.com/b.jpg", "https://example.com/bad.jpg"])

    assert exc_info.value.code == ErrorCode.MEDIA_UPLOAD_FAILED

    async with session_factory() as session:
        stored = await session.get(Gallery, gallery.id)
    assert stored.images == [FakeMediaHost.url_for("https://example.com/a.jpg")]


# ============================================================================
# Remove Images
# ============================================================================

@pytest.mark.unit
async def test_remove_images_removes_all_occurrences(service, media_host):
    gallery = await service.create_gallery(
        "Trip",
        ["https://example.com/a.jpg", "https://example.com/b.jpg", "https://example.com/a.jpg"],
    )
    url_a, url_b, _ = gallery.images

    updated = await service.remove_images(gallery.id, [url_a])

    assert updated.images == [url_b]
    assert url_a not in updated.public_ids
    # Stored public id is used, folder prefix included
    assert media_host.destroyed == [FakeMediaHost.public_id_for("https://example.com/a.jpg")]


@pytest.mark.unit
async def test_remove_images_is_idempotent(service):
    gallery = await service.create_gallery(
        "Trip",
        ["https://example.com/a.jpg", "https://example.com/b.jpg", "https://example.com/c.jpg"],
    )
    targets = [gallery.images[0], gallery.images[2]]

    once = list((await service.remove_images(gallery.id, targets)).images)
    twice = list((await service.remove_images(gallery.id, targets)).images)

    assert once == twice == [gallery.images[1]]


@pytest.mark.unit
async def test_remove_images_can_empty_gallery(service):
    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg"])

    updated = await service.remove_images(gallery.id, list(gallery.images))

    assert updated.images == []
    assert updated.public_ids == {}


@pytest.mark.unit
async def test_remove_images_not_limited_by_upload_cap(service, media_host, monkeypatch):
    """A gallery grown past the per-request cap can be emptied in one call."""
    monkeypatch.setattr(settings, "MAX_IMAGES_PER_REQUEST", 2)

    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg", "https://example.com/b.jpg"])
    gallery = await service.append_images(gallery.id, ["https://example.com/c.jpg", "https://example.com/d.jpg"])
    assert len(gallery.images) == 4

    updated = await service.remove_images(gallery.id, list(gallery.images))

    assert updated.images == []
    assert len(media_host.destroyed) == 4


@pytest.mark.unit
async def test_remove_images_not_found_mutates_nothing(service, media_host, db_session):
    with pytest.raises(ServiceError) as exc_info:
        await service.remove_images("missing-id", ["https://example.com/a.jpg"])

    assert exc_info.value.code == ErrorCode.GALLERY_NOT_FOUND
    assert media_host.destroyed == []
    assert await _gallery_count(db_session) == 0


@pytest.mark.unit
@pytest.mark.parametrize(
    "gallery_id,urls,code",
    [
        (None, ["https://example.com/a.jpg"], ErrorCode.VAL_INVALID_GALLERY_ID),
        ("", ["https://example.com/a.jpg"], ErrorCode.VAL_INVALID_GALLERY_ID),
        (7, ["https://example.com/a.jpg"], ErrorCode.VAL_INVALID_GALLERY_ID),
        ("some-id", None, ErrorCode.VAL_INVALID_IMAGES),
        ("some-id", [], ErrorCode.VAL_INVALID_IMAGES),
        ("some-id", "https://example.com/a.jpg", ErrorCode.VAL_INVALID_IMAGES),
        ("some-id", [None], ErrorCode.VAL_INVALID_IMAGES),
    ],
)
async def test_remove_images_invalid_arguments(service, media_host, gallery_id, urls, code):
    with pytest.raises(ServiceError) as exc_info:
        await service.remove_images(gallery_id, urls)

    assert exc_info.value.code == code
    assert exc_info.value.http_status == 400
    assert media_host.destroyed == []


@pytest.mark.unit
async def test_remove_images_destroy_failure_is_ignored(service, media_host):
    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg", "https://example.com/b.jpg"])
    media_host.fail_destroys.add(FakeMediaHost.public_id_for("https://example.com/a.jpg"))

    updated = await service.remove_images(gallery.id, [gallery.images[0]])

    assert updated.images == [gallery.images[1]]


@pytest.mark.unit
async def test_remove_images_falls_back_to_url_derived_id(service, media_host, db_session):
    """Rows without stored public ids derive them from the URL."""
    legacy = Gallery(
        title="Legacy",
        images=[
            "https://res.cloudinary.com/demo/image/upload/v1712/abc123.jpg",
            "https://res.cloudinary.com/demo/image/upload/v1712/def456.png",
        ],
        public_ids={},
    )
    db_session.add(legacy)
    await db_session.commit()

    updated = await service.remove_images(
        legacy.id,
        ["https://res.cloudinary.com/demo/image/upload/v1712/abc123.jpg"],
    )

    assert media_host.destroyed == ["abc123"]
    assert updated.images == ["https://res.cloudinary.com/demo/image/upload/v1712/def456.png"]


@pytest.mark.unit
async def test_remove_images_attempts_deletion_of_unknown_urls(service, media_host):
    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg"])

    updated = await service.remove_images(
        gallery.id,
        ["https://res.cloudinary.com/demo/image/upload/v1/elsewhere.jpg"],
    )

    assert updated.images == gallery.images
    assert media_host.destroyed == ["elsewhere"]


@pytest.mark.unit
async def test_concurrent_update_is_rejected(service, media_host, session_factory):
    """A write based on a stale read fails with a conflict instead of losing data."""
    gallery = await service.create_gallery("Trip", ["https://example.com/a.jpg"])

    async with session_factory() as stale_session:
        stale_service = GalleryService(stale_session, media_host)
        await stale_service.get_gallery(gallery.id)  # loads version 1

        await service.append_images(gallery.id, ["https://example.com/b.jpg"])

        with pytest.raises(ServiceError) as exc_info:
            await stale_service.remove_images(gallery.id, [gallery.images[0]])

    assert exc_info.value.code == ErrorCode.GALLERY_CONFLICT
    assert exc_info.value.http_status == 409

    async with session_factory() as session:
        stored = await session.get(Gallery, gallery.id)
    assert len(stored.images) == 2


# ============================================================================
# Scenario
# ============================================================================

@pytest.mark.unit
async def test_create_append_remove_scenario(service):
    gallery = await service.create_gallery(
        "Spring Trip",
        ["https://example.com/fileA.jpg", "https://example.com/fileB.jpg"],
    )
    assert len(gallery.images) == 2
    first, second = gallery.images

    gallery = await service.append_images(gallery.id, ["https://example.com/fileC.jpg"])
    assert len(gallery.images) == 3
    assert gallery.images[:2] == [first, second]
    third = gallery.images[2]

    gallery = await service.remove_images(gallery.id, [second])
    assert gallery.images == [first, third]


@pytest.mark.unit
def test_remove_urls_keeps_order():
    assert remove_urls(["a", "b", "a", "c"], ["a"]) == ["b", "c"]
    assert remove_urls(["a", "b"], ["x"]) == ["a", "b"]
    assert remove_urls([], ["a"]) == []
