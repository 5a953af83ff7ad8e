"""
检查点事务 - 单画板迭代期间主文档的可回滚作用域

退出作用域时（无论成功或异常）都回到进入时的历史状态。
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from ..interfaces import IImageHost
from ..models import CheckpointToken, DocumentHandle


@contextmanager
def checkpoint_scope(host: IImageHost, document: DocumentHandle, label: str = "") -> Iterator[CheckpointToken]:
    token = host.begin_checkpoint(document, label)
    try:
        yield token
    finally:
        host.restore(token)
