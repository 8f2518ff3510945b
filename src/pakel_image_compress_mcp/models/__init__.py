"""数据模型包。

定义图片压缩相关的数据结构和模型。
"""

from .compression_config import CompressionSettings
from .compression_result import (
    AttemptRecord,
    BatchResult,
    CompressionOutcome,
    PayloadValidation,
)
from .constants import (
    DataURL,
    ImageFormats,
    QualityDefaults,
    ResizeDefaults,
    ValidationLimits,
    normalize_mime_type,
)
from .source_image import SourceImage


__all__ = [
    # 核心模型
    "AttemptRecord",
    "BatchResult",
    "CompressionOutcome",
    "CompressionSettings",
    # 常量和工具
    "DataURL",
    "ImageFormats",
    "PayloadValidation",
    "QualityDefaults",
    "ResizeDefaults",
    "SourceImage",
    "ValidationLimits",
    "normalize_mime_type",
]
