"""源图片模型。

表示用户选择的一个上传文件：原始字节和声明的 MIME 类型。
"""

from pathlib import Path

from pydantic import BaseModel, Field

from .constants import ImageFormats


class SourceImage(BaseModel):
    """用户选择的源图片，只在一次压缩调用期间存在"""

    data: bytes = Field(repr=False, description="原始文件字节")
    mime_type: str = Field(description="声明的 MIME 类型")
    file_name: str = Field("upload", description="文件名")

    @property
    def size(self) -> int:
        """文件字节数"""
        return len(self.data)

    @classmethod
    def from_bytes(
        cls, data: bytes, mime_type: str, file_name: str = "upload"
    ) -> "SourceImage":
        return cls(data=data, mime_type=mime_type, file_name=file_name)

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> "SourceImage":
        """从磁盘读取源图片。

        未指定 mime_type 时按扩展名推断，不解码文件内容。

        Raises:
            ReadFailureError: 文件不存在或无法读取
        """
        from ..exceptions import ReadFailureError
        from ..utils.message_formatter import MessageFormatter

        path = Path(path)
        try:
            data = path.read_bytes()
        except FileNotFoundError as e:
            raise ReadFailureError(MessageFormatter.file_not_found(path), path.name) from e
        except OSError as e:
            raise ReadFailureError(
                MessageFormatter.operation_failed("读取文件", path, e), path.name
            ) from e

        declared = mime_type or ImageFormats.guess_mime_type(path.name) or ""
        return cls(data=data, mime_type=declared, file_name=path.name)
