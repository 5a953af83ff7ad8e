"""
元数据清理器 - 导出前移除出处/编辑历史类元数据

三类移除各自独立、尽力而为：
1. photoshop:DocumentAncestors
2. Camera Raw 设置命名空间
3. 全部描述性 XMP

无打开文档或元数据子系统不可用时为空操作；任何失败只记录日志，不阻断导出。
"""

from __future__ import annotations

import logging

from ..interfaces import HostError, IImageHost, IMetadataSanitizer, MetadataError
from ..models import DocumentHandle, MetadataKind

logger = logging.getLogger(__name__)

SANITIZE_ORDER = (
    MetadataKind.DOCUMENT_ANCESTORS,
    MetadataKind.CAMERA_RAW,
    MetadataKind.ALL_XMP,
)


class MetadataSanitizer(IMetadataSanitizer):
    """元数据清理器实现"""

    def __init__(self, host: IImageHost, kinds: tuple[MetadataKind, ...] = SANITIZE_ORDER):
        self.host = host
        self.kinds = kinds
        self.errors: list[MetadataError] = []  # 最近一次清理的降级记录

    def sanitize(self, unit: DocumentHandle) -> list[MetadataKind]:
        self.errors = []
        if not self.host.has_open_documents() or not self.host.metadata_available:
            logger.debug("元数据子系统不可用或无打开文档，跳过清理")
            return []

        removed: list[MetadataKind] = []
        for kind in self.kinds:
            try:
                self.host.strip_metadata(unit, kind)
                removed.append(kind)
            except HostError as e:
                self.errors.append(MetadataError(f"元数据清理跳过 {kind.value}: {e}"))
                logger.debug(f"元数据清理跳过 {kind.value}: {e}")
        return removed
