"""
模块接口契约 - 定义各模块的抽象接口

设计原则：
1. 模块间通过接口通信，不直接依赖具体实现
2. 宿主能力收敛为一个窄接口（IImageHost），所有操作显式传入文档句柄
3. 便于单元测试和mock替换

使用方式：
    from artboard_export.interfaces import IImageHost

    class MyHost(IImageHost):
        def enumerate_artboards(self, document: DocumentHandle) -> tuple[ArtboardHandle, ...]:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import (
        ArtboardHandle,
        CheckpointToken,
        Codec,
        CodecResult,
        ColorConversionOptions,
        ColorMode,
        DocumentHandle,
        DocumentInfo,
        JPEGExportOptions,
        MetadataKind,
        WebPExportOptions,
    )


# ============================================================================
# 宿主能力接口
# ============================================================================

class IImageHost(ABC):
    """宿主应用接口 - 文档/图层对象模型的全部能力

    实现方在操作失败时抛出 HostError，由调用组件按各自策略转换。
    """

    @property
    @abstractmethod
    def version(self) -> str:
        """宿主版本号（如 "25.1.0"）"""
        ...

    @property
    def metadata_available(self) -> bool:
        """元数据子系统是否可用"""
        return True

    @abstractmethod
    def active_document(self) -> DocumentHandle | None:
        """当前打开的文档（无则返回None）"""
        ...

    @abstractmethod
    def has_open_documents(self) -> bool:
        ...

    @abstractmethod
    def is_open(self, document: DocumentHandle) -> bool:
        ...

    @abstractmethod
    def get_document_info(self, document: DocumentHandle) -> DocumentInfo:
        """读取文档状态快照"""
        ...

    @abstractmethod
    def duplicate_document(self, document: DocumentHandle, name: str) -> DocumentHandle:
        """复制文档（副本成为新的独立文档）"""
        ...

    @abstractmethod
    def enumerate_artboards(self, document: DocumentHandle) -> tuple[ArtboardHandle, ...]:
        """
        查询顶层画板

        Returns:
            按图层栈顺序排列的画板句柄
        """
        ...

    @abstractmethod
    def select_artboard(self, document: DocumentHandle, artboard: ArtboardHandle) -> None:
        """独占选中画板"""
        ...

    @abstractmethod
    def duplicate_and_edit_contents(self, document: DocumentHandle) -> DocumentHandle:
        """
        将选中图层转为嵌入内容并进入编辑

        会修改 document 的图层结构（需由检查点回滚）。

        Returns:
            独立的内容文档句柄
        """
        ...

    @abstractmethod
    def select_all(self, document: DocumentHandle) -> None:
        ...

    @abstractmethod
    def ungroup(self, document: DocumentHandle) -> None:
        """解散选中内容中的所有编组（含嵌套）"""
        ...

    @abstractmethod
    def autocrop(self, document: DocumentHandle) -> None:
        """裁切画布到非透明内容的包围盒"""
        ...

    @abstractmethod
    def convert_color_profile(self, document: DocumentHandle, options: ColorConversionOptions) -> None:
        """转换到指定颜色配置文件"""
        ...

    @abstractmethod
    def set_mode(self, document: DocumentHandle, mode: ColorMode) -> None:
        ...

    @abstractmethod
    def set_bit_depth(self, document: DocumentHandle, bits_per_channel: int) -> None:
        ...

    @abstractmethod
    def strip_metadata(self, document: DocumentHandle, kind: MetadataKind) -> None:
        """移除一类元数据"""
        ...

    @abstractmethod
    def export_webp(self, document: DocumentHandle, path: Path, options: WebPExportOptions) -> Path:
        ...

    @abstractmethod
    def export_jpeg(self, document: DocumentHandle, path: Path, options: JPEGExportOptions) -> Path:
        ...

    @abstractmethod
    def close_without_saving(self, document: DocumentHandle) -> None:
        ...

    @abstractmethod
    def begin_checkpoint(self, document: DocumentHandle, label: str = "") -> CheckpointToken:
        """记录当前历史状态"""
        ...

    @abstractmethod
    def restore(self, token: CheckpointToken) -> None:
        """回到检查点（丢弃其后的全部历史）"""
        ...


# ============================================================================
# 单画板处理组件接口
# ============================================================================

class IArtboardEnumerator(ABC):
    """画板枚举器接口"""

    @abstractmethod
    def enumerate(self, document: DocumentHandle) -> tuple[ArtboardHandle, ...]:
        """
        枚举画板（只读）

        Raises:
            EnumerationError: 查询失败
        """
        ...


class ILayerIsolator(ABC):
    """图层隔离器接口"""

    @abstractmethod
    def isolate(self, document: DocumentHandle, artboard: ArtboardHandle) -> DocumentHandle:
        """
        将单个画板隔离为独立的扁平文档

        Raises:
            IsolationError: 隔离失败（已丢弃中间文档）
        """
        ...


class IMetadataSanitizer(ABC):
    """元数据清理器接口（尽力而为，不抛异常）"""

    @abstractmethod
    def sanitize(self, unit: DocumentHandle) -> list[MetadataKind]:
        """返回实际移除的元数据类别"""
        ...


class IColorNormalizer(ABC):
    """颜色规范化接口（尽力而为，不抛异常）"""

    @abstractmethod
    def normalize(self, unit: DocumentHandle) -> bool:
        """返回是否执行了配置文件转换"""
        ...


class INameResolver(ABC):
    """导出命名接口"""

    @abstractmethod
    def resolve(self, document_name: str, layer_name: str, prefix: str | None = None) -> str:
        ...

    @abstractmethod
    def reset(self) -> None:
        """开始新批次"""
        ...


class IExporter(ABC):
    """导出器接口"""

    @abstractmethod
    def export(
        self,
        unit: DocumentHandle,
        destination: Path,
        export_name: str,
        codecs: Sequence[Codec],
    ) -> list[CodecResult]:
        """按编码依次写出，单个编码失败不阻断其它编码（由策略决定）"""
        ...


# ============================================================================
# 外部协作者接口（提示框/进度/通知）
# ============================================================================

class IUserInterface(ABC):
    """用户交互接口"""

    @abstractmethod
    def choose_destination(self, prompt: str) -> Path | None:
        """选择输出目录（取消返回None）"""
        ...

    @abstractmethod
    def ask_prefix(self, prompt: str, default: str) -> str | None:
        """输入命名前缀（取消返回None）"""
        ...

    @abstractmethod
    def alert(self, message: str) -> None:
        ...

    @abstractmethod
    def beep(self) -> None:
        ...

    @abstractmethod
    def notify(self, message: str) -> None:
        """最终汇总通知"""
        ...

    def progress(self, current: int, total: int, name: str) -> None:
        """进度显示（纯观察，默认不显示）"""

    def close_progress(self) -> None:
        """关闭进度显示"""


# ============================================================================
# 异常定义
# ============================================================================

class ArtboardExportError(Exception):
    """基础异常"""
    pass


class HostError(ArtboardExportError):
    """宿主操作错误"""
    pass


class PreconditionError(ArtboardExportError):
    """前置条件不满足（整批中止）"""
    pass


class EnumerationError(ArtboardExportError):
    """画板枚举错误（整批中止）"""
    pass


class IsolationError(ArtboardExportError):
    """单画板隔离错误（跳过该画板）"""
    pass


class MetadataError(ArtboardExportError):
    """元数据清理错误（静默降级）"""
    pass


class ColorError(ArtboardExportError):
    """颜色规范化错误（静默降级）"""
    pass


class ExportError(ArtboardExportError):
    """编码写出错误"""
    pass
