from __future__ import annotations

import base64

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from focal.core.config import settings
from focal.core.database import Base
from focal.models import tables  # noqa: F401


@pytest.fixture(autouse=True)
def _no_sentry(monkeypatch):
    monkeypatch.setattr(settings, "SENTRY_DSN", None)


@pytest_asyncio.fixture
async def session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    Session = async_sessionmaker(engine, expire_on_commit=False)
    async with Session() as s:
        yield s
    await engine.dispose()


class FakeClock:
    """Callable epoch-seconds clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class Images:
    """Minimal encoded-image headers with chosen dimensions."""

    @staticmethod
    def jpeg(width: int, height: int) -> bytes:
        app0 = b"\xff\xe0" + (16).to_bytes(2, "big") + b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
        sof0 = (
            b"\xff\xc0"
            + (17).to_bytes(2, "big")
            + b"\x08"
            + height.to_bytes(2, "big")
            + width.to_bytes(2, "big")
            + b"\x03\x01\x22\x00\x02\x11\x01\x03\x11\x01"
        )
        return b"\xff\xd8" + app0 + sof0 + b"\xff\xd9"

    @staticmethod
    def png(width: int, height: int) -> bytes:
        ihdr = width.to_bytes(4, "big") + height.to_bytes(4, "big") + b"\x08\x02\x00\x00\x00"
        return b"\x89PNG\r\n\x1a\n" + (13).to_bytes(4, "big") + b"IHDR" + ihdr + b"\x00\x00\x00\x00"

    @staticmethod
    def gif(width: int, height: int) -> bytes:
        return b"GIF89a" + width.to_bytes(2, "little") + height.to_bytes(2, "little") + b"\x00\x00\x00"

    @staticmethod
    def webp_lossy(width: int, height: int) -> bytes:
        body = b"VP8 " + (10).to_bytes(4, "little") + b"\x00\x00\x00" + b"\x9d\x01\x2a"
        body += width.to_bytes(2, "little") + height.to_bytes(2, "little")
        return b"RIFF" + len(body).to_bytes(4, "little") + b"WEBP" + body

    @staticmethod
    def webp_lossless(width: int, height: int) -> bytes:
        bits = (width - 1) | ((height - 1) << 14)
        body = b"VP8L" + (5).to_bytes(4, "little") + b"\x2f" + bits.to_bytes(4, "little")
        return b"RIFF" + len(body).to_bytes(4, "little") + b"WEBP" + body

    @staticmethod
    def webp_extended(width: int, height: int) -> bytes:
        body = b"VP8X" + (10).to_bytes(4, "little") + b"\x00\x00\x00\x00"
        body += (width - 1).to_bytes(3, "little") + (height - 1).to_bytes(3, "little")
        return b"RIFF" + len(body).to_bytes(4, "little") + b"WEBP" + body

    @staticmethod
    def data_uri(data: bytes, mime_type: str = "image/jpeg") -> str:
        return f"data:{mime_type};base64,{base64.b64encode(data).decode()}"


@pytest.fixture
def images():
    return Images
