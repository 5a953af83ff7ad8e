"""
图层隔离器 - 把单个画板变成独立的扁平文档

流程：
1. 独占选中画板
2. 转为嵌入内容并进入编辑（得到独立文档）
3. 全选 → 解散编组 → 自动裁切

失败策略：不重试；已创建的内容文档立即不保存关闭，只影响当前画板。
主文档上的结构变化（嵌入内容）由批次检查点回滚。
"""

from __future__ import annotations

import logging

from ..interfaces import HostError, IImageHost, ILayerIsolator, IsolationError
from ..models import ArtboardHandle, DocumentHandle

logger = logging.getLogger(__name__)


class LayerIsolator(ILayerIsolator):
    """图层隔离器实现"""

    def __init__(self, host: IImageHost):
        self.host = host

    def isolate(self, document: DocumentHandle, artboard: ArtboardHandle) -> DocumentHandle:
        try:
            self.host.select_artboard(document, artboard)
            unit = self.host.duplicate_and_edit_contents(document)
        except HostError as e:
            raise IsolationError(f"画板内容无法展开: {artboard.name}: {e}") from e

        try:
            self.host.select_all(unit)
            self.host.ungroup(unit)
            self.host.autocrop(unit)
        except HostError as e:
            logger.warning(f"解组失败，丢弃内容文档: {artboard.name}: {e}")
            self.host.close_without_saving(unit)
            raise IsolationError(f"画板解组失败: {artboard.name}: {e}") from e

        return unit
