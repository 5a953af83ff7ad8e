"""
画板枚举器 - 读取文档的顶层画板快照

职责：
1. 按图层栈顺序返回画板句柄
2. 查询失败时给出包含出错位置的诊断信息

测试要点：
- test_enumerate_order: 顺序与图层栈一致
- test_enumerate_no_artboards: 无画板返回空（不是错误）
- test_enumerate_failure: 查询失败抛 EnumerationError
"""

from __future__ import annotations

import traceback

from ..interfaces import EnumerationError, HostError, IArtboardEnumerator, IImageHost
from ..models import ArtboardHandle, DocumentHandle


class ArtboardEnumerator(IArtboardEnumerator):
    """画板枚举器实现"""

    def __init__(self, host: IImageHost):
        self.host = host

    def enumerate(self, document: DocumentHandle) -> tuple[ArtboardHandle, ...]:
        try:
            artboards = tuple(self.host.enumerate_artboards(document))
        except HostError as e:
            raise EnumerationError(f"画板查询失败 ({_location(e)}): {e}") from e

        indices = [ab.index for ab in artboards]
        if indices != sorted(set(indices)):
            raise EnumerationError(f"画板索引重复或无序: {indices}")
        return artboards


def _location(exc: BaseException) -> str:
    """异常发生位置（文件:行号）"""
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return "unknown"
    last = frames[-1]
    return f"{last.filename}:{last.lineno}"
