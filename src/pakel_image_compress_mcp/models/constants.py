"""图像处理相关常量定义。

上传限制、MIME 白名单和 data URL 相关常量，基于 Pillow 的扩展名注册表推断类型。
"""

from pathlib import Path
from typing import Final

from PIL import Image


class ImageFormats:
    """基于 Pillow 的图像格式管理"""

    # 仪表盘上传控件允许的 MIME 类型（image/jpg 为浏览器常见的非标准写法）
    ALLOWED_MIME_TYPES: Final[frozenset[str]] = frozenset(
        {"image/jpeg", "image/png", "image/jpg"}
    )

    # 压缩输出固定为 JPEG
    OUTPUT_FORMAT: Final[str] = "JPEG"
    OUTPUT_MIME_TYPE: Final[str] = "image/jpeg"

    @classmethod
    def guess_mime_type(cls, file_name: str) -> str | None:
        """根据扩展名推断声明的 MIME 类型，不读取文件内容"""
        format_name = Image.registered_extensions().get(Path(file_name).suffix.lower())
        if not format_name:
            return None
        return Image.MIME.get(format_name)


class DataURL:
    """data URL 相关常量"""

    SCHEME: Final[str] = "data:"
    BASE64_MARKER: Final[str] = ";base64"
    SEPARATOR: Final[str] = ","


class ValidationLimits:
    """验证相关限制"""

    # 原始上传文件大小上限 (字节)
    MAX_SOURCE_FILE_SIZE: Final[int] = 5 * 1024 * 1024  # 5MB

    # 写入文档数据库前 base64 载荷的解码后大小上限
    MAX_PAYLOAD_SIZE: Final[int] = 1000 * 1024  # 1000KB

    # 压缩搜索优先达到的目标大小
    TARGET_PAYLOAD_SIZE: Final[int] = 800 * 1024  # 800KB


class QualityDefaults:
    """JPEG 质量相关默认值（0.0-1.0 编码器刻度）"""

    INITIAL: Final[float] = 0.7
    MIN: Final[float] = 0.05
    STEP: Final[float] = 0.05
    AFTER_RESIZE: Final[float] = 0.6

    # Pillow 的 JPEG 质量范围
    PILLOW_MIN: Final[int] = 1
    PILLOW_MAX: Final[int] = 100


class ResizeDefaults:
    """尺寸调整相关默认值"""

    MAX_DIMENSION: Final[int] = 1200
    SCALE: Final[float] = 0.9
    INTERVAL: Final[int] = 3
    MIN_DIMENSION: Final[int] = 300


# 字节大小显示单位（1024 进制）
SIZE_UNITS: Final[tuple[str, ...]] = ("Bytes", "KB", "MB", "GB")



def normalize_mime_type(mime_type: str | None) -> str:
    """标准化 MIME 类型以便与白名单比较"""
    return (mime_type or "").strip().lower()
