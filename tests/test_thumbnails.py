import io
from pathlib import Path

import pytest
from PIL import Image

from filevault.errors import JobFailure
from filevault.files import FileTree
from filevault.models import THUMBNAIL_WIDTHS
from filevault.thumbnails import worker as worker_module
from filevault.thumbnails.images import InvalidImage, create_thumbnail
from filevault.thumbnails.worker import ThumbnailWorker
from tests.tools import image_size, make_image


def test_create_thumbnail_keeps_aspect_ratio():
    thumbnail = create_thumbnail(make_image(800, 400), 250)
    assert image_size(thumbnail) == (250, 125)
    assert Image.open(io.BytesIO(thumbnail)).format == "PNG"


def test_create_thumbnail_keeps_format():
    thumbnail = create_thumbnail(make_image(1000, 1000, format="JPEG"), 100)
    img = Image.open(io.BytesIO(thumbnail))
    assert img.format == "JPEG"
    assert img.size == (100, 100)


def test_create_thumbnail_upscales_small_images():
    assert image_size(create_thumbnail(make_image(50, 20), 500)) == (500, 200)


def test_create_thumbnail_invalid_image():
    with pytest.raises(InvalidImage):
        create_thumbnail(b"this is not an image", 100)


@pytest.fixture
def worker(services, blobs):
    return ThumbnailWorker(services.files, blobs)


@pytest.mark.anyio
async def test_process(services, blobs, worker, user):
    node = await services.files.create_content(user.id, "cat.png", "image", make_image(1000, 600))
    done = await worker.process({"userId": user.id, "fileId": node.id})
    assert done == {500: True, 250: True, 100: True}
    for width in THUMBNAIL_WIDTHS:
        variant = blobs.read(blobs.variant_path(node.local_path, width))
        assert image_size(variant) == (width, width * 3 // 5)
    # the original is untouched
    assert image_size(blobs.read(node.local_path)) == (1000, 600)


@pytest.mark.anyio
async def test_process_is_idempotent(services, blobs, worker, user):
    node = await services.files.create_content(user.id, "cat.png", "image", make_image(600, 600))
    await worker.process({"userId": user.id, "fileId": node.id})
    assert await worker.process({"userId": user.id, "fileId": node.id}) == {500: True, 250: True, 100: True}
    assert image_size(blobs.read(blobs.variant_path(node.local_path, 100))) == (100, 100)


@pytest.mark.anyio
async def test_process_invalid_jobs(services, worker, user, user2):
    node = await services.files.create_content(user.id, "cat.png", "image", make_image())
    folder = await services.files.create_folder(user.id, "folder")
    cases = [
        ({"userId": user.id}, "Missing fileId"),
        ({"fileId": node.id}, "Missing userId"),
        ({"userId": user.id, "fileId": "doesnotexist"}, "File not found"),
        ({"userId": user2.id, "fileId": node.id}, "File not found"),
        ({"userId": user.id, "fileId": folder.id}, "File has no content"),
    ]
    for job, reason in cases:
        with pytest.raises(JobFailure) as e:
            await worker.process(job)
        assert e.value.reason == reason, job


@pytest.mark.anyio
async def test_process_missing_blob(services, worker, user):
    node = await services.files.create_content(user.id, "cat.png", "image", make_image())
    Path(node.local_path).unlink()
    with pytest.raises(JobFailure) as e:
        await worker.process({"userId": user.id, "fileId": node.id})
    assert e.value.reason == "File content not found"


@pytest.mark.anyio
async def test_process_partial_failure(services, blobs, worker, user, monkeypatch):
    node = await services.files.create_content(user.id, "cat.png", "image", make_image(1000, 500))

    def failing_for_250(data, width):
        if width == 250:
            raise OSError("disk full")
        return create_thumbnail(data, width)

    monkeypatch.setattr(worker_module, "create_thumbnail", failing_for_250)
    done = await worker.process({"userId": user.id, "fileId": node.id})
    assert done == {500: True, 250: False, 100: True}
    assert blobs.exists(blobs.variant_path(node.local_path, 500))
    assert not blobs.exists(blobs.variant_path(node.local_path, 250))
    assert blobs.exists(blobs.variant_path(node.local_path, 100))


@pytest.mark.anyio
async def test_process_invalid_image(services, blobs, worker, user):
    node = await services.files.create_content(user.id, "cat.png", "image", b"not an image")
    assert await worker.process({"userId": user.id, "fileId": node.id}) == {500: False, 250: False, 100: False}
    # a failed job leaves the original in place
    assert blobs.read(node.local_path) == b"not an image"


@pytest.mark.anyio
async def test_custom_widths(store, blobs, user):
    files = FileTree(store, blobs)
    node = await files.create_content(user.id, "cat.png", "image", make_image(400, 200))
    worker = ThumbnailWorker(files, blobs, widths=(40,))
    assert await worker.process({"userId": user.id, "fileId": node.id}) == {40: True}
