import asyncio
import io

import pytest
from starlette.datastructures import Headers, UploadFile

from knowlaw.utils.errors import FileTooLarge, TooManyFiles, UnsupportedType
from knowlaw.utils.uploads import IncomingFile, UploadPolicy, is_allowed_type, stage_uploads

TEN_MB = 10 * 1024 * 1024


def _upload(name: str, data: bytes, content_type: str = "application/pdf") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=name,
        headers=Headers({"content-type": content_type}),
    )


def test_exactly_ten_megabytes_is_accepted():
    policy = UploadPolicy()
    accepted = asyncio.run(policy.read([_upload("big.pdf", b"\0" * TEN_MB)]))

    assert accepted[0].size == TEN_MB
    assert accepted[0].info().mimetype == "application/pdf"


def test_one_byte_over_limit_is_rejected():
    policy = UploadPolicy()
    with pytest.raises(FileTooLarge) as excinfo:
        asyncio.run(policy.read([_upload("big.pdf", b"\0" * (TEN_MB + 1))]))

    assert excinfo.value.status_code == 413
    assert excinfo.value.filename == "big.pdf"
    assert "big.pdf" in excinfo.value.message


def test_reads_stop_just_past_the_limit():
    policy = UploadPolicy(max_bytes=16)
    upload = _upload("notes.txt", b"x" * 1000, "text/plain")

    with pytest.raises(FileTooLarge):
        asyncio.run(policy.read([upload]))
    assert upload.file.tell() == 17


def test_file_count_limit():
    policy = UploadPolicy(max_files=10)
    uploads = [_upload(f"f{i}.txt", b"x", "text/plain") for i in range(11)]

    with pytest.raises(TooManyFiles):
        asyncio.run(policy.read(uploads))
    assert len(asyncio.run(policy.read(uploads[:10]))) == 10


@pytest.mark.parametrize(
    "filename, mimetype, allowed",
    [
        ("lease.pdf", "application/octet-stream", True),
        ("scan", "image/png", True),
        ("letter.DOCX", "", True),
        ("contract", "application/vnd.openxmlformats-officedocument.wordprocessingml.document", True),
        ("photo.jpeg", "image/jpeg", True),
        ("archive.zip", "application/zip", False),
        ("script.exe", "application/x-msdownload", False),
    ],
)
def test_type_check_accepts_extension_or_mimetype(filename, mimetype, allowed):
    assert is_allowed_type(filename, mimetype) is allowed


def test_unsupported_type_is_rejected():
    policy = UploadPolicy()
    with pytest.raises(UnsupportedType) as excinfo:
        asyncio.run(policy.read([_upload("archive.zip", b"PK", "application/zip")]))
    assert excinfo.value.status_code == 400
    assert "archive.zip" in excinfo.value.message


def test_stage_uploads_removes_files_after_block(tmp_path):
    files = [
        IncomingFile(filename="../../etc/lease.pdf", mimetype="application/pdf", data=b"%PDF"),
        IncomingFile(filename="notes.txt", mimetype="text/plain", data=b"hello"),
    ]

    with stage_uploads(files, tmp_path / "uploads") as info:
        staged = list((tmp_path / "uploads").iterdir())
        assert len(staged) == 2
        assert all(path.parent == tmp_path / "uploads" for path in staged)
        assert [item.name for item in info] == ["../../etc/lease.pdf", "notes.txt"]
        assert [item.size for item in info] == [4, 5]

    assert list((tmp_path / "uploads").iterdir()) == []


def test_stage_uploads_cleans_up_on_error(tmp_path):
    files = [IncomingFile(filename="notes.txt", mimetype="text/plain", data=b"hello")]

    with pytest.raises(RuntimeError):
        with stage_uploads(files, tmp_path):
            raise RuntimeError("responder blew up")

    assert list(tmp_path.iterdir()) == []
