"""测试配置文件。

提供测试所需的fixtures：即时生成的测试图片和可控的栅格实现。
"""

import os
from collections.abc import Callable
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

from pakel_image_compress_mcp.core.raster import PillowRasterBackend
from pakel_image_compress_mcp.models import CompressionSettings, SourceImage


@dataclass
class FakeSurface:
    """只有尺寸的栅格"""

    size: tuple[int, int]


class SyntheticBackend:
    """可控的栅格实现：编码结果的大小由 size_fn(宽, 高, 质量) 决定"""

    def __init__(
        self,
        size: tuple[int, int],
        size_fn: Callable[[int, int, float], int],
    ):
        self.size = size
        self.size_fn = size_fn
        self.decode_calls = 0
        self.encode_calls: list[tuple[int, int, float]] = []
        self.resample_calls: list[tuple[int, int]] = []

    def decode(self, data: bytes) -> FakeSurface:
        self.decode_calls += 1
        return FakeSurface(self.size)

    def resample(self, surface: FakeSurface, width: int, height: int) -> FakeSurface:
        self.resample_calls.append((width, height))
        return FakeSurface((width, height))

    def encode_jpeg(self, surface: FakeSurface, quality: float) -> bytes:
        width, height = surface.size
        self.encode_calls.append((width, height, quality))
        return b"\xff" * self.size_fn(width, height, quality)


class CountingBackend(PillowRasterBackend):
    """记录调用次数的 Pillow 实现"""

    def __init__(self):
        super().__init__()
        self.decode_calls = 0
        self.encode_calls = 0

    def decode(self, data: bytes) -> Image.Image:
        self.decode_calls += 1
        return super().decode(data)

    def encode_jpeg(self, surface: Image.Image, quality: float) -> bytes:
        self.encode_calls += 1
        return super().encode_jpeg(surface, quality)


def image_bytes(img: Image.Image, fmt: str, **params) -> bytes:
    buffer = BytesIO()
    img.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def make_source(img: Image.Image, fmt: str = "PNG", **params) -> SourceImage:
    mime_type = "image/png" if fmt == "PNG" else "image/jpeg"
    return SourceImage.from_bytes(
        image_bytes(img, fmt, **params), mime_type, f"test.{fmt.lower()}"
    )


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """临时目录fixture"""
    return tmp_path


@pytest.fixture
def settings() -> CompressionSettings:
    """默认压缩设置"""
    return CompressionSettings()


@pytest.fixture
def solid_png() -> SourceImage:
    """500x500 纯色 PNG"""
    return make_source(Image.new("RGB", (500, 500), color=(34, 139, 34)), "PNG")


@pytest.fixture
def large_jpeg() -> SourceImage:
    """2400x1800 的渐变图 JPEG，超过预缩放上限"""
    gradient = Image.linear_gradient("L").resize((2400, 1800))
    img = Image.merge("RGB", (gradient, gradient.transpose(Image.Transpose.ROTATE_180), gradient))
    return make_source(img, "JPEG", quality=90)


@pytest.fixture
def portrait_jpeg() -> SourceImage:
    """1000x3000 竖图 JPEG"""
    img = Image.new("RGB", (1000, 3000), color="white")
    draw = ImageDraw.Draw(img)
    for i in range(30):
        draw.rectangle([0, i * 100, 1000, i * 100 + 50], fill=(i * 8, 100, 200 - i * 5))
    return make_source(img, "JPEG", quality=85)


@pytest.fixture
def transparent_png() -> SourceImage:
    """带透明通道的 PNG"""
    img = Image.new("RGBA", (400, 400), color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    for i in range(10):
        x, y = i * 30, i * 30
        draw.ellipse([x, y, x + 100, y + 100], fill=(255 - i * 20, 100 + i * 15, i * 25, 180))
    return make_source(img, "PNG")


@pytest.fixture
def noise_png() -> SourceImage:
    """400x400 随机噪声 PNG，很难压缩"""
    img = Image.frombytes("RGB", (400, 400), os.urandom(400 * 400 * 3))
    return make_source(img, "PNG")


@pytest.fixture
def image_file(temp_dir: Path) -> Path:
    """磁盘上的 JPEG 测试文件"""
    path = temp_dir / "warung.jpg"
    img = Image.new("RGB", (640, 480), color="orange")
    ImageDraw.Draw(img).ellipse([100, 100, 400, 400], fill="brown")
    img.save(path, "JPEG", quality=90)
    return path
