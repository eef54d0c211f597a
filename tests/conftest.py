import io
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from clinic_import.config.settings import Settings

ZipBuilder = Callable[[dict[str, bytes | str]], bytes]


def build_pdf(text: str) -> bytes:
    """Generate a single-page PDF with *text* on it."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, text)
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    return build_pdf("Chart note for patient 1001")


@pytest.fixture()
def make_zip() -> ZipBuilder:
    """Build an in-memory ZIP; names ending in '/' become directory entries."""

    def _build(members: dict[str, bytes | str]) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as archive:
            for name, content in members.items():
                archive.writestr(name, b"" if name.endswith("/") else content)
        return buf.getvalue()

    return _build


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        uploads_root=tmp_path / "uploads",
        commit_backend="none",
    )


@pytest.fixture()
def bad_crc_zip() -> bytes:
    """A recognized export whose ledger member fails its CRC check when read."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_STORED) as archive:
        archive.writestr("00_Tables/patients.csv", "firstName\nAda\n")
        archive.writestr("01_LedgerHistory/jan.csv", b"amount\n" + b"9" * 64 + b"\n")
    data = bytearray(buf.getvalue())
    data[data.index(b"9" * 64)] = ord("8")
    return bytes(data)
