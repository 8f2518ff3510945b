"""图像压缩 MCP 服务器。

把压缩、预览转换、载荷验证和大小格式化以 MCP 工具的形式提供给仪表盘后端。
"""

from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from .compressor import ImageCompressor
from .exceptions import ImageCompressError
from .utils.logging_helpers import configure_logging, get_logger
from .utils.message_formatter import MessageFormatter, format_byte_size


# MCP 服务器响应类型定义
MCPCompressionResponse = dict[str, Any]


class MCPResponseBuilder:
    """MCP 服务器响应构建器，专门用于构建符合 MCP 协议的响应格式。"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """构建错误结果。

        Args:
            message: 错误消息
            error_type: 错误类型
            details: 额外的错误详情

        Returns:
            dict: 标准化的错误响应
        """
        result = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def compression_error(error: ImageCompressError) -> dict[str, Any]:
        """根据压缩异常构建错误结果，error_type 为错误分类"""
        details: dict[str, Any] = {}
        if error.file_name:
            details["file_name"] = error.file_name
        if attempts := getattr(error, "attempts", None):
            details["attempts"] = attempts
            details["final_size_bytes"] = error.final_size_bytes
            details["final_size_kb"] = error.final_size_kb
        return MCPResponseBuilder.error(error.message, error.kind.value, details)

    @staticmethod
    def processing_error(message: str, operation: str | None = None) -> dict[str, Any]:
        """构建处理错误结果。"""
        details = {"operation": operation} if operation else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="processing",
            details=details,
        )


logger = get_logger()

# 创建MCP应用
mcp: FastMCP[Any] = FastMCP("Padukuhan Pakel 图片压缩服务")

# 全局压缩器实例
compressor = ImageCompressor()


@mcp.tool()
async def compress_image_to_base64(
    input_path: str,
    mime_type: str | None = None,
) -> MCPCompressionResponse:
    """压缩图片为 data URL 形式的 base64 JPEG，保证不超过 1000KB。

    Args:
        input_path: 图片文件路径（JPEG/PNG，最大 5MB）
        mime_type: 声明的 MIME 类型，默认按扩展名推断

    Returns:
        dict: 压缩结果，包含 data_url、大小、质量和尺寸信息
    """
    try:
        outcome = await compressor.compress_async(Path(input_path), mime_type)
        return {
            "success": True,
            "data_url": outcome.data_url,
            "size_bytes": outcome.size_bytes,
            "size_human": format_byte_size(outcome.size_bytes),
            "quality_used": outcome.quality_used,
            "attempts": outcome.attempts,
            "original_dimensions": outcome.original_dimensions,
            "final_dimensions": outcome.final_dimensions,
            "summary": outcome.get_summary(),
        }
    except ImageCompressError as e:
        return MCPResponseBuilder.compression_error(e)
    except Exception as e:
        logger.error(MessageFormatter.operation_failed("图片压缩", input_path, e))
        return MCPResponseBuilder.processing_error(str(e), "图片压缩")


@mcp.tool()
def convert_image_to_base64(
    input_path: str,
    mime_type: str | None = None,
) -> MCPCompressionResponse:
    """不压缩，直接把图片转换为 data URL，用于即时预览。

    Args:
        input_path: 图片文件路径（JPEG/PNG，最大 5MB）
        mime_type: 声明的 MIME 类型，默认按扩展名推断
    """
    try:
        data_url = compressor.convert_without_compression(Path(input_path), mime_type)
        size = compressor.validate_size(data_url)
        return {
            "success": True,
            "data_url": data_url,
            "size_bytes": size.size_bytes,
            "size_human": format_byte_size(size.size_bytes),
        }
    except ImageCompressError as e:
        return MCPResponseBuilder.compression_error(e)
    except Exception as e:
        logger.error(MessageFormatter.operation_failed("预览转换", input_path, e))
        return MCPResponseBuilder.processing_error(str(e), "预览转换")


@mcp.tool()
def validate_base64_size(data: str) -> dict[str, Any]:
    """检查 base64 字符串（可带 data URL 头）解码后是否不超过硬性上限（默认 1000KB）。"""
    return compressor.validate_size(data).model_dump()


@mcp.tool(name="format_byte_size")
def format_byte_size_tool(size_bytes: int) -> str:
    """把字节数格式化为 Bytes/KB/MB/GB 显示。"""
    return format_byte_size(size_bytes)


@mcp.tool()
def compress_images_to_base64(input_paths: list[str]) -> dict[str, Any]:
    """并发压缩多个图片（如 UMKM 主图和变体图），结果按输入顺序返回。"""
    batch = compressor.compress_many(input_paths)
    return {
        **batch.to_dict(),
        "summary": batch.get_summary(),
    }


# ============================================================================
# 应用入口
# ============================================================================


def main() -> None:
    """启动 MCP 服务器"""
    configure_logging()
    logger.info("启动图片压缩 MCP 服务器")
    mcp.run()


if __name__ == "__main__":
    main()
