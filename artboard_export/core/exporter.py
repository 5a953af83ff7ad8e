"""
导出器 - 把内容文档按编码写到目标目录

职责：
1. 每种编码独立写出：<目录>/<名称>.webp / .jpg（扩展名小写）
2. 已存在的文件直接覆盖
3. 单个编码失败的后续处理由 export_error_policy 决定

编码选项来自 ExportFormatSpec；未配置 JPEG 选项时 JPEG 写出失败。

测试要点：
- test_export_both_codecs: WebP + JPEG 均写出
- test_codec_failure_best_effort: 一种编码失败仍尝试另一种
- test_codec_failure_abort_artboard: 失败后跳过剩余编码
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from ..config import ExportErrorPolicy
from ..interfaces import ExportError, HostError, IExporter, IImageHost
from ..models import Codec, CodecResult, DocumentHandle, ExportFormatSpec, JPEGExportOptions

logger = logging.getLogger(__name__)


class Exporter(IExporter):
    """导出器实现"""

    def __init__(
        self,
        host: IImageHost,
        formats: ExportFormatSpec | None = None,
        error_policy: ExportErrorPolicy = ExportErrorPolicy.BEST_EFFORT,
    ):
        self.host = host
        self.formats = formats if formats is not None else ExportFormatSpec(jpeg=JPEGExportOptions())
        self.error_policy = ExportErrorPolicy(error_policy)

    @staticmethod
    def target_path(destination: Path, export_name: str, codec: Codec) -> Path:
        return Path(destination) / f"{export_name}.{codec.extension}"

    def export_codec(self, unit: DocumentHandle, destination: Path, export_name: str, codec: Codec) -> Path:
        """
        写出单个编码

        Raises:
            ExportError: 写出失败
        """
        path = self.target_path(destination, export_name, codec)
        try:
            if codec == Codec.WEBP:
                return self.host.export_webp(unit, path, self.formats.webp)
            if self.formats.jpeg is None:
                raise ExportError(f"未配置JPEG选项: {path.name}")
            return self.host.export_jpeg(unit, path, self.formats.jpeg)
        except HostError as e:
            raise ExportError(f"{codec.label}写出失败: {path.name}: {e}") from e

    def export(
        self,
        unit: DocumentHandle,
        destination: Path,
        export_name: str,
        codecs: Sequence[Codec],
    ) -> list[CodecResult]:
        results: list[CodecResult] = []
        stop = False
        for codec in codecs:
            if stop:
                results.append(CodecResult(codec=codec, skipped=True, error="前一编码失败，已跳过"))
                continue
            try:
                path = self.export_codec(unit, destination, export_name, codec)
                results.append(CodecResult(codec=codec, path=path, ok=True))
            except ExportError as e:
                logger.warning(str(e))
                results.append(CodecResult(codec=codec, error=str(e)))
                stop = self.error_policy == ExportErrorPolicy.ABORT_ARTBOARD
        return results
