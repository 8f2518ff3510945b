"""图像压缩器接口。

基于核心压缩引擎的简洁用户接口，供仪表盘表单在保存前调用。
"""

from collections.abc import Sequence
from functools import partial
from pathlib import Path

from .config import get_config
from .core.compression_engine import (
    compress_image,
    compress_image_async,
    convert_without_compression,
)
from .core.payload import validate_payload_size
from .core.raster import PillowRasterBackend, RasterBackend
from .engine.concurrent_executor import ConcurrentExecutor
from .exceptions import ImageCompressError, InvalidInputError
from .models import (
    BatchResult,
    CompressionOutcome,
    CompressionSettings,
    PayloadValidation,
    SourceImage,
)
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter, format_byte_size


logger = get_logger()

ImageInput = SourceImage | str | Path


class ImageCompressor:
    """图像压缩器。

    提供单文件压缩、预览转换、载荷大小验证和多文件并发压缩。
    接受 SourceImage，或磁盘路径（按扩展名推断 MIME 类型）。
    """

    def __init__(
        self,
        settings: CompressionSettings | None = None,
        backend: RasterBackend | None = None,
        max_workers: int | None = None,
        force_executor_type: str | None = None,
    ):
        """初始化压缩器。

        Args:
            settings: 压缩设置，None 时使用全局配置
            backend: 栅格处理实现，None 时使用 Pillow
            max_workers: 多文件压缩时的最大并发数
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
        """
        app_config = get_config()
        if max_workers is None:
            max_workers = app_config.compression.MAX_WORKERS

        # 参数验证
        if max_workers <= 0:
            raise InvalidInputError("max_workers 必须大于 0")

        if force_executor_type not in {None, "thread", "process"}:
            raise InvalidInputError(
                "force_executor_type 必须是 'thread', 'process' 或 None"
            )

        self.settings = settings or CompressionSettings.from_defaults(
            app_config.compression
        )
        self.backend = backend or PillowRasterBackend()
        self.executor = ConcurrentExecutor(max_workers, force_executor_type)

        logger.debug("初始化图像压缩器")

    def compress(self, image: ImageInput | None, mime_type: str | None = None) -> str:
        """压缩图片，返回 data URL 形式的 base64 JPEG。

        Examples:
            >>> compressor = ImageCompressor()
            >>> data_url = compressor.compress("warung.jpg")
            >>> data_url.startswith("data:image/jpeg;base64,")
            True
        """
        return self.compress_detailed(image, mime_type).data_url

    def compress_detailed(
        self, image: ImageInput | None, mime_type: str | None = None
    ) -> CompressionOutcome:
        """压缩图片，返回包含尝试记录的完整结果"""
        return compress_image(
            self._to_source(image, mime_type), self.settings, self.backend
        )

    async def compress_async(
        self, image: ImageInput | None, mime_type: str | None = None
    ) -> CompressionOutcome:
        """异步压缩，尝试之间让出事件循环"""
        return await compress_image_async(
            self._to_source(image, mime_type), self.settings, self.backend
        )

    def convert_without_compression(
        self, image: ImageInput | None, mime_type: str | None = None
    ) -> str:
        """不压缩，直接转换为 data URL（用于预览）"""
        return convert_without_compression(
            self._to_source(image, mime_type), self.settings
        )

    def validate_size(self, data: str) -> PayloadValidation:
        """检查已编码的 base64 字符串是否不超过硬性上限"""
        return validate_payload_size(data, self.settings.max_size_bytes)

    def compress_many(self, images: Sequence[ImageInput]) -> BatchResult:
        """并发压缩多个图片，每个图片独立搜索，结果按输入顺序返回"""
        sources: list[SourceImage] = []
        failures: dict[int, CompressionOutcome] = {}
        for index, image in enumerate(images):
            try:
                source = self._to_source(image)
                if source is None:
                    raise InvalidInputError(MessageFormatter.missing_file())
                sources.append(source)
            except ImageCompressError as e:
                failures[index] = CompressionOutcome.from_error(
                    e, e.file_name or str(image)
                )

        task = partial(compress_image, settings=self.settings, backend=self.backend)
        compressed = iter(self.executor.execute_tasks(sources, task))
        results = [
            failures[index] if index in failures else next(compressed)
            for index in range(len(images))
        ]

        batch = BatchResult(success=True, results=results)
        if failed := len(batch.get_failed_items()):
            batch.success = False
            batch.error = f"{failed} 个文件压缩失败"
        logger.info(batch.get_summary())
        return batch

    @staticmethod
    def _to_source(
        image: ImageInput | None, mime_type: str | None = None
    ) -> SourceImage | None:
        """标准化输入为 SourceImage"""
        match image:
            case None:
                return None
            case SourceImage():
                return image
            case str() | Path():
                return SourceImage.from_path(image, mime_type)
            case _:
                raise InvalidInputError(f"不支持的输入类型: {type(image).__name__}")


# 便捷函数


def compress_image_to_base64(image: ImageInput | None, **kwargs) -> str:
    """便捷的压缩函数，使用全局配置

    Args:
        image: SourceImage 或图片路径
        **kwargs: 传给 ImageCompressor 的参数（settings、backend 等）
    """
    return ImageCompressor(**kwargs).compress(image)


def convert_image_to_base64(image: ImageInput | None, **kwargs) -> str:
    """便捷的预览转换函数"""
    return ImageCompressor(**kwargs).convert_without_compression(image)


def validate_base64_size(data: str) -> PayloadValidation:
    """便捷的载荷大小验证函数（1000KB 上限）"""
    return validate_payload_size(data)


__all__ = [
    "ImageCompressor",
    "compress_image_to_base64",
    "convert_image_to_base64",
    "format_byte_size",
    "validate_base64_size",
]
