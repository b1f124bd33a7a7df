import asyncio
import re

import pytest

from workisready.core.exceptions import MediaUploadError
from workisready.services.media_service import TASKS, MediaStorage, build_filename
from support import upload


def test_filename_format():
    name = build_filename("sampleWork", "Kitchen Sink.JPG")
    assert re.fullmatch(r"sampleWork-\d+-\d+\.jpg", name)


def test_filenames_do_not_collide():
    assert build_filename("image", "a.png") != build_filename("image", "a.png")


@pytest.mark.parametrize(
    "reference",
    ["uploads/../../etc/passwd", "https://cdn.example.com/a.png", "", "uploads"],
)
def test_references_outside_root_ignored(tmp_path, reference):
    assert MediaStorage(root=str(tmp_path)).path_for(reference) is None


def test_reference_maps_into_root(tmp_path):
    path = MediaStorage(root=str(tmp_path)).path_for("/uploads/tasks/a.png")
    assert path == (tmp_path / "tasks" / "a.png").resolve()


def test_save_writes_file(tmp_path):
    storage = MediaStorage(root=str(tmp_path))
    reference = asyncio.run(storage.save(upload("photo.PNG", b"png-bytes"), TASKS, "image"))

    assert reference.startswith("uploads/tasks/image-")
    assert reference.endswith(".png")
    assert storage.path_for(reference).read_bytes() == b"png-bytes"


def test_documents_only_where_allowed(tmp_path):
    storage = MediaStorage(root=str(tmp_path))
    with pytest.raises(MediaUploadError):
        asyncio.run(storage.save(upload("cv.pdf"), TASKS, "image"))
    reference = asyncio.run(storage.save(upload("cv.pdf"), TASKS, "sampleWork", documents=True))
    assert reference.endswith(".pdf")


def test_oversize_file_rejected(tmp_path):
    storage = MediaStorage(root=str(tmp_path), max_bytes=4)
    with pytest.raises(MediaUploadError) as excinfo:
        asyncio.run(storage.save(upload("big.png", b"0123456789"), TASKS, "image"))
    assert excinfo.value.code == "INVALID_UPLOAD"
    assert excinfo.value.status_code == 400


def test_delete(tmp_path):
    storage = MediaStorage(root=str(tmp_path))
    reference = asyncio.run(storage.save(upload("a.png"), TASKS, "image"))

    assert asyncio.run(storage.delete(reference)) is True
    assert asyncio.run(storage.delete(reference)) is False
    assert asyncio.run(storage.delete(None)) is False


def test_save_many_removes_partial_batch(tmp_path):
    storage = MediaStorage(root=str(tmp_path))
    files = [upload("a.png"), upload("b.png"), upload("virus.exe")]

    with pytest.raises(MediaUploadError):
        asyncio.run(storage.save_many(files, TASKS, "image"))

    assert list((tmp_path / "tasks").iterdir()) == []


def test_save_many_skips_empty_parts(tmp_path):
    storage = MediaStorage(root=str(tmp_path))
    saved = asyncio.run(storage.save_many([upload(""), upload("a.webp")], TASKS, "image"))
    assert len(saved) == 1
