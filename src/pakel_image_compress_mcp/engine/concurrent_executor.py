"""并发执行器模块。

同时压缩多个上传文件（例如 UMKM 主图和各个商品变体图），
每个文件运行各自独立的搜索，互不共享状态。
"""

from collections.abc import Callable, Sequence
from concurrent.futures import (
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)

from ..config import AppConfig
from ..exceptions import ImageCompressError
from ..models.compression_result import CompressionOutcome
from ..models.source_image import SourceImage
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter


logger = get_logger()

CompressTask = Callable[[SourceImage], CompressionOutcome]


class ConcurrentExecutor:
    """通用并发执行器

    结果按输入顺序返回，单个文件失败只影响它自己的结果。
    """

    def __init__(self, max_workers: int = 4, force_executor_type: str | None = None):
        """初始化并发执行器

        Args:
            max_workers: 最大并发数
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
        """
        self.max_workers = max_workers
        self.force_executor_type = force_executor_type

    def execute_tasks(
        self, sources: Sequence[SourceImage], task_function: CompressTask
    ) -> list[CompressionOutcome]:
        """执行并发任务

        Args:
            sources: 源图片列表
            task_function: 压缩单个源图片的函数（进程池时必须可 pickle）

        Returns:
            list[CompressionOutcome]: 与 sources 顺序一致的结果
        """
        if not sources:
            return []

        results: list[CompressionOutcome | None] = [None] * len(sources)
        executor_class = self._choose_executor(sources)

        with executor_class(max_workers=self.max_workers) as executor:
            future_to_index: dict[Future[CompressionOutcome], int] = {
                executor.submit(task_function, source): index
                for index, source in enumerate(sources)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                results[index] = self._collect_result(future, sources[index])

        return [r for r in results if r is not None]

    def _collect_result(
        self, future: Future[CompressionOutcome], source: SourceImage
    ) -> CompressionOutcome:
        """收集单个任务的结果，异常转换为失败结果"""
        try:
            result = future.result()
            logger.debug(f"处理成功: {source.file_name}")
            return result
        except ImageCompressError as e:
            logger.warning(f"处理失败: {source.file_name} - {e.message}")
            return CompressionOutcome.from_error(e, source.file_name, source.size)
        except Exception as e:
            logger.error(MessageFormatter.format_error("并发任务处理", source.file_name, e))
            return CompressionOutcome.from_error(e, source.file_name, source.size)

    def _choose_executor(self, sources: Sequence[SourceImage]) -> type:
        """根据任务特征选择合适的执行器

        Returns:
            执行器类 (ThreadPoolExecutor 或 ProcessPoolExecutor)
        """
        executor_type = self.force_executor_type or AppConfig.get_executor_type(
            len(sources), sum(source.size for source in sources)
        )

        if executor_type == "process":
            logger.debug(f"使用ProcessPoolExecutor: 任务数={len(sources)}")
            return ProcessPoolExecutor

        logger.debug(f"使用ThreadPoolExecutor: 任务数={len(sources)}")
        return ThreadPoolExecutor
