import asyncio
import io
import os

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.core.exceptions import ValidationError
from app.services import file_service


def run(coro):
    return asyncio.run(coro)


def upload(name, content=b"solid part", content_type="application/octet-stream", size=None):
    return UploadFile(
        file=io.BytesIO(content),
        filename=name,
        size=len(content) if size is None else size,
        headers=Headers({"content-type": content_type}),
    )


def test_model_upload_is_stored_with_metadata(storage):
    stored = run(file_service.save_upload(upload("My Part.STL"), file_service.model_file_rule()))

    assert stored.file_type == "STL"
    assert stored.size == len(b"solid part")
    assert stored.relative_path.startswith("/uploads/")
    assert os.path.basename(stored.relative_path).startswith("my_part_")
    assert stored.relative_path.endswith(".stl")
    assert file_service.stored_file_exists(stored.relative_path)


@pytest.mark.parametrize("name", ["part.exe", "part", "part.pdf"])
def test_disallowed_model_extensions(storage, name):
    with pytest.raises(ValidationError):
        file_service.validate_upload(upload(name), file_service.model_file_rule())


def test_missing_upload():
    with pytest.raises(ValidationError) as exc:
        file_service.validate_upload(None, file_service.model_file_rule())
    assert exc.value.message == "No 3D model file was uploaded"


def test_purchase_order_needs_matching_mime_type():
    rule = file_service.purchase_order_rule()
    assert file_service.validate_upload(upload("po.PDF", content_type="application/pdf"), rule) == ".pdf"
    with pytest.raises(ValidationError):
        file_service.validate_upload(upload("po.pdf", content_type="text/html"), rule)


def test_deliverable_accepts_archives(storage):
    stored = run(file_service.save_upload(upload("final.zip"), file_service.deliverable_file_rule()))
    assert stored.relative_path.startswith("/completed_files/")
    assert os.path.basename(stored.relative_path).startswith("completed_final_")


def test_oversized_stream_leaves_no_partial_file(storage, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "MAX_MODEL_FILE_SIZE", 4)
    # Declared size understates the real content
    with pytest.raises(ValidationError):
        run(file_service.save_upload(upload("big.stl", b"0123456789", size=1), file_service.model_file_rule()))

    assert not any(files for _, _, files in os.walk(str(storage)))


def test_delete_stored_file_never_raises(storage):
    stored = run(file_service.save_upload(upload("part.obj"), file_service.model_file_rule()))

    assert file_service.delete_stored_file(stored.relative_path) is True
    assert file_service.delete_stored_file(stored.relative_path) is False
    assert file_service.delete_stored_file(None) is False
    assert file_service.delete_stored_file("/../../etc/passwd") is False
