"""压缩引擎模块。

把上传图片压缩成 data URL 形式的 base64 JPEG，保证成功时不超过硬性大小上限。

搜索过程：解码后一次性预缩放到最长边上限，然后循环编码并测量大小；
未达到目标大小时，每隔 ``resize_interval`` 次尝试缩减一次尺寸，其余尝试降低质量，
直到达到目标大小或用尽尝试次数。
"""

import asyncio
import math
from enum import Enum
from typing import Any

from ..exceptions import CompressionBudgetExceededError, InvalidInputError
from ..models.compression_config import CompressionSettings
from ..models.compression_result import AttemptRecord, CompressionOutcome
from ..models.constants import ImageFormats, normalize_mime_type
from ..models.source_image import SourceImage
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from .payload import build_data_url, estimate_payload_size
from .raster import PillowRasterBackend, RasterBackend


logger = get_logger()


class SearchState(str, Enum):
    """压缩搜索状态"""

    VALIDATING = "validating"
    DECODING = "decoding"
    PRESCALING = "prescaling"
    ATTEMPTING = "attempting"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


TERMINAL_STATES = frozenset({SearchState.ACCEPTED, SearchState.REJECTED})


def validate_source(
    source: SourceImage | None, settings: CompressionSettings
) -> SourceImage:
    """在解码之前检查文件是否存在、类型和大小

    Raises:
        InvalidInputError: 任一条件不满足
    """
    if source is None:
        raise InvalidInputError(MessageFormatter.missing_file())

    if not settings.is_allowed_mime_type(source.mime_type):
        raise InvalidInputError(
            MessageFormatter.invalid_mime_type(
                source.mime_type, settings.allowed_mime_types
            ),
            source.file_name,
        )

    if source.size > settings.max_source_bytes:
        raise InvalidInputError(
            MessageFormatter.file_too_large(source.size, settings.max_source_bytes),
            source.file_name,
        )

    return source


def fit_within(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """按比例缩小，使最长边正好等于 max_dimension"""
    if width <= max_dimension and height <= max_dimension:
        return width, height

    if width >= height:
        return max_dimension, max(1, math.floor(height * max_dimension / width))
    return max(1, math.floor(width * max_dimension / height)), max_dimension


class CompressionSearch:
    """单次压缩调用的搜索状态机。

    Validating → Decoding → PreScaling → Attempting(n) → Accepted | Rejected。
    ``step()`` 只执行一次尝试，``run()``/``run_async()`` 驱动整个搜索。
    每个实例独占自己的栅格数据，不在调用之间共享。
    """

    def __init__(
        self,
        source: SourceImage | None,
        settings: CompressionSettings | None = None,
        backend: RasterBackend | None = None,
    ):
        self.source = source
        self.settings = settings or CompressionSettings()
        self.backend = backend or PillowRasterBackend()

        self.state = SearchState.VALIDATING
        self.quality = self.settings.initial_quality
        self.attempts = 0
        self.attempt_log: list[AttemptRecord] = []

        self._decoded: Any = None
        self._surface: Any = None
        self._original_dimensions: tuple[int, int] | None = None
        self._outcome: CompressionOutcome | None = None

    @property
    def dimensions(self) -> tuple[int, int] | None:
        """当前栅格尺寸"""
        return tuple(self._surface.size) if self._surface is not None else None

    @property
    def outcome(self) -> CompressionOutcome | None:
        return self._outcome

    def prepare(self) -> None:
        """验证、解码并预缩放，进入 Attempting 状态"""
        if self.state != SearchState.VALIDATING:
            return

        try:
            source = validate_source(self.source, self.settings)

            self.state = SearchState.DECODING
            self._decoded = self.backend.decode(source.data)
            self._original_dimensions = tuple(self._decoded.size)

            self.state = SearchState.PRESCALING
            width, height = self._original_dimensions
            new_size = fit_within(width, height, self.settings.max_dimension)
            if new_size != (width, height):
                logger.debug(f"预缩放 {width}x{height} → {new_size[0]}x{new_size[1]}")
                self._surface = self.backend.resample(self._decoded, *new_size)
            else:
                self._surface = self._decoded
        except Exception:
            self.state = SearchState.REJECTED
            raise

        self.state = SearchState.ATTEMPTING

    def step(self) -> CompressionOutcome | None:
        """执行一次尝试。

        Returns:
            CompressionOutcome | None: 被接受时返回结果，需要继续时返回 None

        Raises:
            CompressionBudgetExceededError: 尝试用尽且仍超过硬性上限
        """
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"压缩搜索已结束: {self.state.value}")
        self.prepare()

        self.attempts += 1
        width, height = self.dimensions
        data_url = build_data_url(
            self.backend.encode_jpeg(self._surface, self.quality),
            ImageFormats.OUTPUT_MIME_TYPE,
        )
        size = estimate_payload_size(data_url)
        self.attempt_log.append(
            AttemptRecord(
                attempt=self.attempts,
                quality=self.quality,
                width=width,
                height=height,
                size_bytes=size,
            )
        )
        logger.debug(
            f"第 {self.attempts} 次尝试: {width}x{height} 质量 {self.quality} → {size} 字节"
        )

        if (
            size <= self.settings.target_size_bytes
            or self.attempts >= self.settings.max_attempts
        ):
            if size <= self.settings.max_size_bytes:
                return self._accept(data_url, size)
            raise self._reject(size)

        self._adjust()
        return None

    def run(self) -> CompressionOutcome:
        """同步执行整个搜索"""
        while True:
            outcome = self.step()
            if outcome is not None:
                return outcome

    async def run_async(self) -> CompressionOutcome:
        """异步执行搜索，每次调整后让出控制权"""
        while True:
            outcome = self.step()
            if outcome is not None:
                return outcome
            await asyncio.sleep(self.settings.yield_delay)

    def _adjust(self) -> None:
        """未达到目标时：缩减尺寸或降低质量"""
        width, height = self.dimensions
        if self.settings.should_resize(self.attempts, width, height):
            new_width = math.floor(width * self.settings.dimension_scale)
            new_height = math.floor(height * self.settings.dimension_scale)
            # 每次都从解码后的原图重采样，避免多次缩放累积模糊
            self._surface = self.backend.resample(self._decoded, new_width, new_height)
            self.quality = max(self.settings.quality_after_resize, self.quality)
        else:
            self.quality = max(
                self.settings.min_quality, self.quality - self.settings.quality_step
            )
        self.quality = round(self.quality, 4)

    def _accept(self, data_url: str, size: int) -> CompressionOutcome:
        self.state = SearchState.ACCEPTED
        final_dimensions = self.dimensions
        self._outcome = CompressionOutcome(
            success=True,
            file_name=self.source.file_name,
            data_url=data_url,
            original_size=self.source.size,
            size_bytes=size,
            attempts=self.attempts,
            quality_used=self.quality,
            original_dimensions=self._original_dimensions,
            final_dimensions=final_dimensions,
            was_resized=final_dimensions != self._original_dimensions,
            attempt_log=self.attempt_log,
        )
        self._release()
        logger.info(
            f"压缩完成 {self.source.file_name}: {self._outcome.get_summary()}"
        )
        return self._outcome

    def _reject(self, size: int) -> CompressionBudgetExceededError:
        self.state = SearchState.REJECTED
        self._release()
        message = MessageFormatter.budget_exceeded(
            size, self.attempts, self.settings.max_size_bytes
        )
        logger.warning(f"压缩失败 {self.source.file_name}: {message}")
        return CompressionBudgetExceededError(
            message,
            final_size_bytes=size,
            attempts=self.attempts,
            file_name=self.source.file_name,
        )

    def _release(self) -> None:
        """丢弃中间栅格数据"""
        self._decoded = None
        self._surface = None


def compress_image(
    source: SourceImage | None,
    settings: CompressionSettings | None = None,
    backend: RasterBackend | None = None,
) -> CompressionOutcome:
    """压缩单个图片，返回被接受的结果。

    Raises:
        InvalidInputError: 缺少文件、类型不允许或文件过大（不会解码）
        DecodeFailureError: 图像数据无法解码
        CompressionBudgetExceededError: 尝试用尽仍超过硬性上限
    """
    return CompressionSearch(source, settings, backend).run()


async def compress_image_async(
    source: SourceImage | None,
    settings: CompressionSettings | None = None,
    backend: RasterBackend | None = None,
) -> CompressionOutcome:
    """compress_image 的异步版本，尝试之间让出事件循环"""
    return await CompressionSearch(source, settings, backend).run_async()


def convert_without_compression(
    source: SourceImage | None, settings: CompressionSettings | None = None
) -> str:
    """只做类型和大小验证，把原始字节直接编码为 data URL，用于预览"""
    source = validate_source(source, settings or CompressionSettings())
    return build_data_url(source.data, normalize_mime_type(source.mime_type))
