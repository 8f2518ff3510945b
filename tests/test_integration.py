"""集成测试。

测试压缩器接口、多文件并发压缩和 MCP 工具。
"""

import asyncio
import base64
import os
import pickle
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path

import pytest
from PIL import Image

from pakel_image_compress_mcp.compressor import ImageCompressor
from pakel_image_compress_mcp.config import get_config, reset_config
from pakel_image_compress_mcp.exceptions import (
    CompressionBudgetExceededError,
    ErrorKind,
    InvalidInputError,
    ReadFailureError,
)
from pakel_image_compress_mcp.models import (
    CompressionOutcome,
    CompressionSettings,
    SourceImage,
)


def decode_data_url(data_url: str) -> Image.Image:
    from io import BytesIO

    payload = data_url.split(",", 1)[1]
    return Image.open(BytesIO(base64.b64decode(payload)))


class TestImageCompressor:
    """压缩器接口测试"""

    def test_compress_from_path(self, image_file: Path):
        """从磁盘路径压缩"""
        compressor = ImageCompressor()
        data_url = compressor.compress(image_file)

        assert data_url.startswith("data:image/jpeg;base64,")
        img = decode_data_url(data_url)
        assert img.format == "JPEG"
        assert img.size == (640, 480)

    def test_compress_detailed(self, image_file: Path):
        compressor = ImageCompressor()
        outcome = compressor.compress_detailed(str(image_file))

        assert outcome.success
        assert outcome.file_name == "warung.jpg"
        assert outcome.attempts == 1
        assert outcome.quality_used == 0.7
        assert outcome.original_dimensions == (640, 480)
        assert outcome.final_dimensions == (640, 480)
        assert not outcome.was_resized
        assert outcome.original_size == image_file.stat().st_size
        assert "质量 0.7" in outcome.get_summary()

    def test_compress_async(self, image_file: Path):
        compressor = ImageCompressor()
        outcome = asyncio.run(compressor.compress_async(image_file))

        assert outcome.success
        assert outcome.data_url == compressor.compress(image_file)

    def test_convert_without_compression(self, image_file: Path):
        """预览转换保留原始字节"""
        compressor = ImageCompressor()
        data_url = compressor.convert_without_compression(image_file)

        payload = data_url.split(",", 1)[1]
        assert data_url.startswith("data:image/jpeg;base64,")
        assert base64.b64decode(payload) == image_file.read_bytes()

    def test_explicit_mime_type_wins(self, image_file: Path):
        compressor = ImageCompressor()
        with pytest.raises(InvalidInputError):
            compressor.compress(image_file, mime_type="image/gif")

    def test_missing_path(self, temp_dir: Path):
        compressor = ImageCompressor()
        with pytest.raises(ReadFailureError) as exc_info:
            compressor.compress(temp_dir / "hilang.jpg")

        assert exc_info.value.kind is ErrorKind.READ_FAILURE
        assert exc_info.value.file_name == "hilang.jpg"

    def test_no_file(self):
        with pytest.raises(InvalidInputError):
            ImageCompressor().compress(None)

    def test_unsupported_input_type(self):
        with pytest.raises(InvalidInputError):
            ImageCompressor().compress(12345)

    def test_validate_size(self, image_file: Path):
        compressor = ImageCompressor()
        data_url = compressor.compress(image_file)
        result = compressor.validate_size(data_url)

        assert result.is_valid
        assert result.size_bytes <= 1000 * 1024

    @pytest.mark.parametrize("max_workers", [0, -1])
    def test_non_positive_max_workers_rejected(self, max_workers: int):
        with pytest.raises(InvalidInputError):
            ImageCompressor(max_workers=max_workers)

    def test_invalid_executor_type_rejected(self):
        with pytest.raises(InvalidInputError):
            ImageCompressor(force_executor_type="fiber")

    def test_default_max_workers_from_config(self):
        reset_config()
        compressor = ImageCompressor()
        assert compressor.executor.max_workers == get_config().compression.MAX_WORKERS

    def test_summary_reports_reduction(self):
        outcome = CompressionOutcome(
            success=True,
            original_size=1000,
            size_bytes=250,
            attempts=1,
            quality_used=0.7,
        )

        assert outcome.get_compression_ratio() == 75.0
        assert "减少 75.0%" in outcome.get_summary()


class TestMimeGuessing:
    """按扩展名推断 MIME 类型"""

    @pytest.mark.parametrize(
        ("file_name", "expected"),
        [
            ("a.jpg", "image/jpeg"),
            ("a.JPEG", "image/jpeg"),
            ("a.png", "image/png"),
            ("a.gif", "image/gif"),
        ],
    )
    def test_from_path(self, temp_dir: Path, file_name: str, expected: str):
        path = temp_dir / file_name
        path.write_bytes(b"\x00")
        assert SourceImage.from_path(path).mime_type == expected

    def test_unknown_extension(self, temp_dir: Path):
        path = temp_dir / "catatan.txt"
        path.write_text("bukan gambar")
        assert SourceImage.from_path(path).mime_type == ""


class TestCompressMany:
    """多文件并发压缩"""

    def test_results_in_input_order(self, image_file: Path, temp_dir: Path):
        text_file = temp_dir / "catatan.txt"
        text_file.write_text("bukan gambar")
        png_file = temp_dir / "varian.png"
        Image.new("RGB", (300, 200), color="teal").save(png_file)

        compressor = ImageCompressor(force_executor_type="thread")
        batch = compressor.compress_many(
            [image_file, temp_dir / "hilang.jpg", text_file, png_file]
        )

        assert not batch.success
        assert batch.error == "2 个文件压缩失败"
        assert [r.success for r in batch.results] == [True, False, False, True]
        assert batch.results[1].error_kind == ErrorKind.READ_FAILURE.value
        assert batch.results[1].file_name == "hilang.jpg"
        assert batch.results[2].error_kind == ErrorKind.INVALID_INPUT.value
        assert batch.results[2].file_name == "catatan.txt"
        assert batch.results[3].final_dimensions == (300, 200)
        assert batch.get_success_rate() == 50.0

    def test_none_entry_fails_alone(self, image_file: Path):
        batch = ImageCompressor().compress_many([None, image_file])

        assert batch.results[0].error_kind == ErrorKind.INVALID_INPUT.value
        assert batch.results[1].success

    def test_all_successful(self, image_file: Path):
        batch = ImageCompressor().compress_many([image_file, image_file])

        assert batch.success
        assert batch.error is None
        assert batch.results[0].data_url == batch.results[1].data_url

    def test_empty(self):
        batch = ImageCompressor().compress_many([])

        assert batch.success
        assert batch.results == []

    def test_to_dict_drops_attempt_log(self, image_file: Path):
        data = ImageCompressor().compress_many([image_file]).to_dict()

        assert "attempt_log" not in data["results"][0]
        assert data["results"][0]["success"]

    def test_process_pool_keeps_order_and_isolates_failures(self, temp_dir: Path):
        """进程池：预算失败和类型错误都只影响各自的结果"""
        good = temp_dir / "utama.png"
        Image.new("RGB", (300, 200), color="teal").save(good)
        noise = temp_dir / "noise.png"
        Image.frombytes("RGB", (400, 400), os.urandom(400 * 400 * 3)).save(noise)
        text_file = temp_dir / "catatan.txt"
        text_file.write_text("bukan gambar")
        strict = CompressionSettings(
            target_size_bytes=20 * 1024, max_size_bytes=20 * 1024, max_attempts=3
        )

        compressor = ImageCompressor(settings=strict, force_executor_type="process")
        batch = compressor.compress_many([good, noise, text_file, good])

        assert [r.success for r in batch.results] == [True, False, False, True]
        assert [r.file_name for r in batch.results] == [
            "utama.png",
            "noise.png",
            "catatan.txt",
            "utama.png",
        ]
        assert batch.results[1].error_kind == ErrorKind.COMPRESSION_BUDGET_EXCEEDED.value
        assert batch.results[1].attempts == 3
        assert batch.results[1].size_bytes > 20 * 1024
        assert batch.results[2].error_kind == ErrorKind.INVALID_INPUT.value
        assert batch.results[0].data_url == batch.results[3].data_url
        assert batch.error == "2 个文件压缩失败"

    def test_large_batch_uses_process_pool(self, temp_dir: Path):
        """超过 5 个文件时自动选择进程池"""
        paths = []
        for i in range(7):
            path = temp_dir / f"varian_{i}.png"
            Image.new("RGB", (100 + i * 10, 80), color=(i * 40, 90, 160)).save(path)
            paths.append(path)
        paths[2] = temp_dir / "hilang.jpg"

        compressor = ImageCompressor()
        sources = [SourceImage.from_path(p) for p in paths if p.exists()]
        assert compressor.executor._choose_executor(sources) is ProcessPoolExecutor

        text_file = temp_dir / "catatan.txt"
        text_file.write_text("bukan gambar")
        paths.append(text_file)
        batch = compressor.compress_many(paths)

        assert [r.success for r in batch.results] == [
            True, True, False, True, True, True, True, False
        ]
        assert batch.results[2].file_name == "hilang.jpg"
        assert batch.results[7].error_kind == ErrorKind.INVALID_INPUT.value
        for index in (0, 1, 3, 4, 5, 6):
            assert batch.results[index].final_dimensions == (100 + index * 10, 80)

    def test_compression_errors_survive_pickling(self):
        """进程池把异常传回主进程时保留全部字段"""
        error = CompressionBudgetExceededError(
            "terlalu besar", final_size_bytes=2048 * 1024, attempts=25, file_name="a.png"
        )
        restored = pickle.loads(pickle.dumps(error))

        assert isinstance(restored, CompressionBudgetExceededError)
        assert restored.message == "terlalu besar"
        assert restored.attempts == 25
        assert restored.final_size_kb == 2048
        assert restored.file_name == "a.png"

        restored = pickle.loads(pickle.dumps(InvalidInputError("x", "b.jpg")))
        assert restored.file_name == "b.jpg"
        assert restored.kind is ErrorKind.INVALID_INPUT


class TestMCPServer:
    """MCP服务器功能测试"""

    def test_mcp_server_imports(self):
        """测试MCP服务器模块导入"""
        from pakel_image_compress_mcp.mcp_server import mcp

        assert mcp is not None

    def test_tool_names(self):
        from pakel_image_compress_mcp import mcp_server

        assert mcp_server.compress_image_to_base64.name == "compress_image_to_base64"
        assert mcp_server.convert_image_to_base64.name == "convert_image_to_base64"
        assert mcp_server.validate_base64_size.name == "validate_base64_size"
        assert mcp_server.format_byte_size_tool.name == "format_byte_size"
        assert mcp_server.compress_images_to_base64.name == "compress_images_to_base64"

    def test_compress_tool(self, image_file: Path):
        from pakel_image_compress_mcp.mcp_server import compress_image_to_base64

        result = asyncio.run(compress_image_to_base64.fn(str(image_file)))

        assert result["success"]
        assert result["data_url"].startswith("data:image/jpeg;base64,")
        assert result["attempts"] == 1
        assert result["final_dimensions"] == (640, 480)

    def test_compress_tool_budget_exceeded(self, temp_dir: Path, monkeypatch):
        from pakel_image_compress_mcp import mcp_server

        noise_file = temp_dir / "noise.png"
        Image.frombytes("RGB", (400, 400), os.urandom(400 * 400 * 3)).save(noise_file)
        strict = CompressionSettings(
            target_size_bytes=1024, max_size_bytes=1024, max_attempts=2, yield_delay=0
        )
        monkeypatch.setattr(mcp_server, "compressor", ImageCompressor(settings=strict))

        result = asyncio.run(mcp_server.compress_image_to_base64.fn(str(noise_file)))

        assert not result["success"]
        assert result["error_type"] == "compression_budget_exceeded"
        assert result["details"]["attempts"] == 2
        assert result["details"]["final_size_kb"] > 1

    def test_compress_tool_invalid_input(self, temp_dir: Path):
        from pakel_image_compress_mcp.mcp_server import compress_image_to_base64

        text_file = temp_dir / "catatan.txt"
        text_file.write_text("bukan gambar")
        result = asyncio.run(compress_image_to_base64.fn(str(text_file)))

        assert result["error_type"] == "invalid_input"
        assert result["details"]["file_name"] == "catatan.txt"

    def test_convert_tool(self, image_file: Path):
        from pakel_image_compress_mcp.mcp_server import convert_image_to_base64

        result = convert_image_to_base64.fn(str(image_file))

        assert result["success"]
        assert result["size_bytes"] == image_file.stat().st_size

    def test_validate_and_format_tools(self):
        from pakel_image_compress_mcp.mcp_server import (
            format_byte_size_tool,
            validate_base64_size,
        )

        result = validate_base64_size.fn("data:image/png;base64,QUJD")
        assert result == {"is_valid": True, "size_bytes": 3, "size_kb": 0}
        assert format_byte_size_tool.fn(1536) == "1.5 KB"

    def test_validate_tool_uses_configured_ceiling(self, monkeypatch):
        from pakel_image_compress_mcp import mcp_server

        small = CompressionSettings(target_size_bytes=2, max_size_bytes=2)
        monkeypatch.setattr(mcp_server, "compressor", ImageCompressor(settings=small))

        result = mcp_server.validate_base64_size.fn("data:image/png;base64,QUJD")
        assert result == {"is_valid": False, "size_bytes": 3, "size_kb": 0}

    def test_batch_tool(self, image_file: Path, temp_dir: Path):
        from pakel_image_compress_mcp.mcp_server import compress_images_to_base64

        result = compress_images_to_base64.fn([str(image_file), str(temp_dir / "x.jpg")])

        assert not result["success"]
        assert len(result["results"]) == 2
        assert "1/2" in result["summary"]


class TestEntryPoint:
    def test_version(self, monkeypatch, capsys):
        from pakel_image_compress_mcp import __version__
        from pakel_image_compress_mcp.__main__ import main

        monkeypatch.setattr("sys.argv", ["pakel-image-compress-mcp", "--version"])
        main()

        assert capsys.readouterr().out.strip() == f"pakel-image-compress-mcp {__version__}"
