"""压缩配置模型。

定义迭代压缩搜索的配置参数，默认值即仪表盘使用的固定阈值。
"""

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    ImageFormats,
    QualityDefaults,
    ResizeDefaults,
    ValidationLimits,
    normalize_mime_type,
)


if TYPE_CHECKING:
    from ..config import CompressionDefaults


class CompressionSettings(BaseModel):
    """压缩搜索配置"""

    # 大小阈值
    target_size_bytes: int = Field(
        ValidationLimits.TARGET_PAYLOAD_SIZE, gt=0, description="目标大小（软上限）"
    )
    max_size_bytes: int = Field(
        ValidationLimits.MAX_PAYLOAD_SIZE, gt=0, description="硬性大小上限"
    )

    # 尺寸设置
    max_dimension: int = Field(
        ResizeDefaults.MAX_DIMENSION, gt=0, description="预缩放的最长边上限"
    )
    dimension_scale: float = Field(
        ResizeDefaults.SCALE, gt=0, lt=1, description="每次尺寸缩减的比例"
    )
    resize_interval: int = Field(
        ResizeDefaults.INTERVAL, gt=0, description="每隔多少次尝试缩减一次尺寸"
    )
    min_resize_dimension: int = Field(
        ResizeDefaults.MIN_DIMENSION, gt=0, description="宽高都大于该值才缩减尺寸"
    )

    # 质量设置（0.0-1.0 编码器刻度）
    initial_quality: float = Field(
        QualityDefaults.INITIAL, gt=0, le=1, description="初始质量"
    )
    min_quality: float = Field(QualityDefaults.MIN, gt=0, le=1, description="最低质量")
    quality_step: float = Field(
        QualityDefaults.STEP, gt=0, le=1, description="每次降低的质量"
    )
    quality_after_resize: float = Field(
        QualityDefaults.AFTER_RESIZE, gt=0, le=1, description="尺寸缩减后恢复的质量下限"
    )

    # 搜索预算
    max_attempts: int = Field(25, ge=1, description="最大尝试次数")
    yield_delay: float = Field(0.01, ge=0, description="异步搜索每次调整后的让出时间（秒）")

    # 输入限制
    max_source_bytes: int = Field(
        ValidationLimits.MAX_SOURCE_FILE_SIZE, gt=0, description="原始文件大小上限"
    )
    allowed_mime_types: frozenset[str] = Field(
        ImageFormats.ALLOWED_MIME_TYPES, description="允许的 MIME 类型"
    )

    @field_validator("allowed_mime_types")
    @classmethod
    def validate_allowed_mime_types(cls, v: frozenset[str]) -> frozenset[str]:
        if not v:
            raise ValueError("允许的 MIME 类型不能为空")
        return frozenset(normalize_mime_type(m) for m in v)

    @model_validator(mode="after")
    def validate_thresholds(self) -> "CompressionSettings":
        if self.target_size_bytes > self.max_size_bytes:
            raise ValueError("目标大小不能超过硬性大小上限")
        if self.min_quality > self.initial_quality:
            raise ValueError("最低质量不能高于初始质量")
        return self

    @classmethod
    def from_defaults(cls, defaults: "CompressionDefaults") -> "CompressionSettings":
        """根据全局配置创建压缩设置"""
        return cls(
            target_size_bytes=defaults.TARGET_SIZE_KB * 1024,
            max_size_bytes=defaults.MAX_SIZE_KB * 1024,
            max_source_bytes=defaults.MAX_SOURCE_SIZE_MB * 1024 * 1024,
            max_dimension=defaults.MAX_DIMENSION,
            max_attempts=defaults.MAX_ATTEMPTS,
            initial_quality=defaults.INITIAL_QUALITY,
            yield_delay=defaults.YIELD_DELAY,
        )

    def is_allowed_mime_type(self, mime_type: str | None) -> bool:
        """检查 MIME 类型是否被允许"""
        return normalize_mime_type(mime_type) in self.allowed_mime_types

    def should_resize(self, attempt: int, width: int, height: int) -> bool:
        """本次调整是否缩减尺寸（而不是降低质量）"""
        return (
            attempt % self.resize_interval == 0
            and width > self.min_resize_dimension
            and height > self.min_resize_dimension
        )
