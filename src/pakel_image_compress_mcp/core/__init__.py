"""核心模块包。

载荷大小估算、栅格处理和迭代压缩搜索。
"""

from .compression_engine import (
    CompressionSearch,
    SearchState,
    compress_image,
    compress_image_async,
    convert_without_compression,
    validate_source,
)
from .payload import (
    build_data_url,
    estimate_payload_size,
    split_data_url,
    validate_payload_size,
)
from .raster import PillowRasterBackend, RasterBackend, to_pillow_quality


__all__ = [
    "CompressionSearch",
    "PillowRasterBackend",
    "RasterBackend",
    "SearchState",
    "build_data_url",
    "compress_image",
    "compress_image_async",
    "convert_without_compression",
    "estimate_payload_size",
    "split_data_url",
    "to_pillow_quality",
    "validate_payload_size",
    "validate_source",
]
