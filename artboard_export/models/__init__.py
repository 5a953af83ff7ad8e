"""
数据模型层 - 定义系统核心数据结构

所有模块通过这些模型交互，实现解耦：
- DocumentHandle/ArtboardHandle/CheckpointToken: 宿主对象的句柄
- DocumentInfo: 文档状态快照
- WebPExportOptions/JPEGExportOptions: 封闭的导出选项
- BatchResult/ArtboardOutcome: 批次结果
"""

from .batch import ArtboardOutcome, ArtboardStatus, BatchResult, BatchStatus, CodecResult
from .document import (
    ArtboardHandle,
    CheckpointToken,
    ColorMode,
    DocumentHandle,
    DocumentInfo,
    LayerInfo,
    LayerKind,
    MetadataKind,
    RenderingIntent,
)
from .export_spec import (
    CANONICAL_PROFILE,
    Codec,
    ColorConversionOptions,
    ExportFormatSpec,
    JPEGExportOptions,
    WebPExportOptions,
)

__all__ = [
    "ArtboardHandle",
    "CheckpointToken",
    "ColorMode",
    "DocumentHandle",
    "DocumentInfo",
    "LayerInfo",
    "LayerKind",
    "MetadataKind",
    "RenderingIntent",
    "CANONICAL_PROFILE",
    "Codec",
    "ColorConversionOptions",
    "ExportFormatSpec",
    "JPEGExportOptions",
    "WebPExportOptions",
    "ArtboardOutcome",
    "ArtboardStatus",
    "BatchResult",
    "BatchStatus",
    "CodecResult",
]
