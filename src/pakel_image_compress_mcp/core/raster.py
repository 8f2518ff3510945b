"""栅格处理模块。

解码、重采样和 JPEG 编码的最小能力接口，以及基于 Pillow 的实现。
"""

from io import BytesIO
from typing import Any, Protocol

from PIL import Image, ImageOps

from ..exceptions import handle_image_errors
from ..models.constants import ImageFormats, QualityDefaults
from ..utils.logging_helpers import get_logger


logger = get_logger()


class RasterBackend(Protocol):
    """栅格能力接口，surface 需要提供 ``size`` 属性 (宽, 高)"""

    def decode(self, data: bytes) -> Any: ...

    def resample(self, surface: Any, width: int, height: int) -> Any: ...

    def encode_jpeg(self, surface: Any, quality: float) -> bytes: ...


def to_pillow_quality(quality: float) -> int:
    """把 0.0-1.0 的质量换算为 Pillow 的 1-100"""
    jpeg_quality = max(
        QualityDefaults.PILLOW_MIN, min(QualityDefaults.PILLOW_MAX, round(quality * 100))
    )
    if jpeg_quality == 100:
        # 质量100会禁用部分JPEG压缩算法，文件明显变大
        jpeg_quality = 98
    return jpeg_quality


class PillowRasterBackend:
    """基于 Pillow 的栅格处理实现"""

    def __init__(self, background_color: tuple[int, int, int] = (255, 255, 255)):
        """
        Args:
            background_color: 透明像素合成到 JPEG 时使用的背景色
        """
        self.background_color = background_color

    @handle_image_errors("图像解码")
    def decode(self, data: bytes) -> Image.Image:
        """解码为 RGB 图像，应用 EXIF 方向"""
        with Image.open(BytesIO(data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            return self._prepare_for_jpeg(img)

    def resample(self, surface: Image.Image, width: int, height: int) -> Image.Image:
        """高质量重采样到指定尺寸"""
        return surface.resize((width, height), Image.Resampling.LANCZOS)

    def encode_jpeg(self, surface: Image.Image, quality: float) -> bytes:
        """按给定质量编码为 JPEG 字节"""
        buffer = BytesIO()
        surface.save(
            buffer,
            format=ImageFormats.OUTPUT_FORMAT,
            quality=to_pillow_quality(quality),
            optimize=True,
            progressive=False,
        )
        return buffer.getvalue()

    def _prepare_for_jpeg(self, img: Image.Image) -> Image.Image:
        """为JPEG格式准备图片，JPEG不支持透明度，需要转换为RGB"""
        if img.mode == "P":
            # 调色板模式：有透明色时按RGBA处理
            if "transparency" not in img.info:
                return img.convert("RGB")
            img = img.convert("RGBA")

        if img.mode in ("RGBA", "LA", "PA"):
            img = img.convert("RGBA")
            # 使用alpha通道合成到背景色
            rgb_img = Image.new("RGB", img.size, self.background_color)
            rgb_img.paste(img, mask=img.split()[-1])
            return rgb_img

        if img.mode != "RGB":
            # CMYK、灰度、二值等其他模式
            return img.convert("RGB")

        return img
