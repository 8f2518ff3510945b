"""压缩结果模型。

定义压缩搜索、载荷验证和批量处理的结果数据结构。
"""

from typing import Any

from humanize import naturalsize
from pydantic import BaseModel, Field


class BaseResult(BaseModel):
    """结果基类，包含通用字段和方法"""

    success: bool = Field(description="是否成功")
    error: str | None = Field(None, description="错误信息")

    @staticmethod
    def format_size(size_bytes: int) -> str:
        """格式化文件大小为人类可读格式"""
        return naturalsize(size_bytes, binary=True)


class AttemptRecord(BaseModel):
    """一次编码尝试的记录（Encoded Candidate 的参数和大小）"""

    attempt: int = Field(ge=1, description="尝试序号，从 1 开始")
    quality: float = Field(description="编码质量（0.0-1.0）")
    width: int = Field(gt=0, description="编码时的宽度")
    height: int = Field(gt=0, description="编码时的高度")
    size_bytes: int = Field(description="解码后的字节数")


class CompressionOutcome(BaseResult):
    """单个图片的压缩结果"""

    file_name: str | None = Field(None, description="源文件名")
    data_url: str | None = Field(None, description="data URL 形式的 base64 JPEG")
    original_size: int = Field(0, description="原始文件大小（字节）")
    size_bytes: int = Field(0, description="最终载荷大小（字节）")
    attempts: int = Field(0, description="编码尝试次数")
    quality_used: float | None = Field(None, description="被接受的编码质量")

    # 尺寸信息
    original_dimensions: tuple[int, int] | None = Field(None, description="解码尺寸")
    final_dimensions: tuple[int, int] | None = Field(None, description="最终尺寸")
    was_resized: bool = Field(False, description="是否调整了尺寸")

    attempt_log: list[AttemptRecord] = Field(default_factory=list, description="尝试记录")
    error_kind: str | None = Field(None, description="错误分类")

    @classmethod
    def from_error(
        cls, error: Exception, file_name: str | None = None, original_size: int = 0
    ) -> "CompressionOutcome":
        """根据异常创建失败结果（批量处理使用）"""
        kind = getattr(error, "kind", None)
        return cls(
            success=False,
            error=getattr(error, "message", str(error)),
            error_kind=kind.value if kind is not None else None,
            file_name=file_name or getattr(error, "file_name", None),
            original_size=original_size,
            size_bytes=getattr(error, "final_size_bytes", 0),
            attempts=getattr(error, "attempts", 0),
        )

    def get_size_saved(self) -> int:
        """节省的字节数"""
        return max(0, self.original_size - self.size_bytes)

    def get_compression_ratio(self) -> float:
        """压缩比例（百分比）"""
        if self.original_size == 0:
            return 0.0
        return (self.get_size_saved() / self.original_size) * 100

    def get_summary(self) -> str:
        """压缩结果摘要"""
        if not self.success:
            return f"失败: {self.error}"

        return (
            f"{self.format_size(self.original_size)} → {self.format_size(self.size_bytes)} "
            f"(减少 {self.get_compression_ratio():.1f}%, "
            f"质量 {self.quality_used}, {self.attempts} 次尝试)"
        )


class PayloadValidation(BaseModel):
    """base64 载荷大小验证结果"""

    is_valid: bool = Field(description="是否不超过上限")
    size_bytes: int = Field(description="解码后的字节数")
    size_kb: int = Field(description="四舍五入的 KB 数")


class BatchResult(BaseResult):
    """批量处理结果，results 与输入顺序一致"""

    results: list[CompressionOutcome] = Field(description="每个文件的处理结果")

    def get_successful_items(self) -> list[CompressionOutcome]:
        """获取成功的结果项"""
        return [r for r in self.results if r.success]

    def get_failed_items(self) -> list[CompressionOutcome]:
        """获取失败的结果项"""
        return [r for r in self.results if not r.success]

    def get_success_rate(self) -> float:
        """获取成功率（百分比）"""
        if not self.results:
            return 0.0
        return (len(self.get_successful_items()) / len(self.results)) * 100

    def get_summary(self) -> str:
        """批量处理摘要"""
        total = len(self.results)
        successful = len(self.get_successful_items())
        total_size = self.format_size(
            sum(r.size_bytes for r in self.get_successful_items())
        )
        return (
            f"处理 {successful}/{total} 个文件 "
            f"(成功率 {self.get_success_rate():.1f}%), 输出共 {total_size}"
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude={"results": {"__all__": {"attempt_log"}}})
