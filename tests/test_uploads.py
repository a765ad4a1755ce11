import io

import pytest
from fastapi import UploadFile

from vidshare.config import settings
from vidshare.utils.errors import ApiError
from vidshare.utils.uploads import has_file, save_temp_upload, spooled_uploads


def _upload(data: bytes = b"payload", filename: str = "clip.MP4") -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=filename)


def test_has_file():
    assert has_file(_upload())
    assert not has_file(None)
    assert not has_file(_upload(filename=""))


async def test_save_temp_upload(tmp_path):
    path = await save_temp_upload(_upload(b"abc"), temp_dir=tmp_path)

    assert path.parent == tmp_path
    assert path.suffix == ".mp4"
    assert path.read_bytes() == b"abc"


async def test_size_limit_removes_partial_file(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)

    with pytest.raises(ApiError) as exc:
        await save_temp_upload(_upload(b"too big"), temp_dir=tmp_path)

    assert exc.value.status_code == 400
    assert list(tmp_path.iterdir()) == []


async def test_spooled_uploads_cleans_up(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_TEMP_PATH", tmp_path)

    async with spooled_uploads(_upload(b"video"), None, _upload(b"thumb", "t.png")) as paths:
        video_path, missing, thumb_path = paths
        assert missing is None
        assert video_path.read_bytes() == b"video"
        assert thumb_path.suffix == ".png"

    assert list(tmp_path.iterdir()) == []


async def test_spooled_uploads_cleans_up_on_error(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_TEMP_PATH", tmp_path)

    with pytest.raises(ApiError):
        async with spooled_uploads(_upload(b"video")):
            raise ApiError.internal("storage exploded")

    assert list(tmp_path.iterdir()) == []
