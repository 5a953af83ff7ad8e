"""
导出命名 - 由文档名/画板名/前缀生成文件名

规则：
- 文档名去掉最后一段扩展名
- 有前缀：前缀 + 画板名；无前缀：文档名 + 连接符 + 画板名
- 拼接后把非法字符 : / \\ * ? " < > | CR LF . 全部替换为替换字符
- 同名处理由 collision_policy 决定（默认静默覆盖）

测试要点：
- test_resolve_illegal_chars: 输出不含非法字符
- test_resolve_prefix: 前缀优先于文档名
- test_collision_suffix: 批次内重名追加序号
"""

from __future__ import annotations

import re

from ..config import ILLEGAL_NAME_CHARS, CollisionPolicy
from ..interfaces import INameResolver

_ILLEGAL_PATTERN = re.compile("[" + re.escape(ILLEGAL_NAME_CHARS) + "]")
_EXTENSION_PATTERN = re.compile(r"\.[^.]+$")


def base_name(document_name: str) -> str:
    """去掉最后一段扩展名"""
    return _EXTENSION_PATTERN.sub("", document_name)


class NameResolver(INameResolver):
    """导出命名实现"""

    def __init__(
        self,
        substitute: str = "-",
        joiner: str = " - ",
        collision_policy: CollisionPolicy = CollisionPolicy.OVERWRITE,
    ):
        if len(substitute) != 1 or substitute in ILLEGAL_NAME_CHARS:
            raise ValueError(f"替换字符必须是单个合法字符: {substitute!r}")
        self.substitute = substitute
        self.joiner = joiner
        self.collision_policy = CollisionPolicy(collision_policy)
        self._issued: dict[str, int] = {}

    def sanitize(self, name: str) -> str:
        return _ILLEGAL_PATTERN.sub(self.substitute, name)

    def resolve(self, document_name: str, layer_name: str, prefix: str | None = None) -> str:
        if prefix is None:
            raw = f"{base_name(document_name)}{self.joiner}{layer_name}"
        else:
            raw = f"{prefix}{layer_name}"
        name = self.sanitize(raw)

        if self.collision_policy == CollisionPolicy.SUFFIX:
            name = self._unique(name)
        return name

    def _unique(self, name: str) -> str:
        # 文件系统大小写不敏感时同样视为重名
        key = name.lower()
        if key not in self._issued:
            self._issued[key] = 1
            return name
        count = self._issued[key]
        while True:
            count += 1
            candidate = f"{name}{self.substitute}{count}"
            if candidate.lower() not in self._issued:
                break
        self._issued[key] = count
        self._issued[candidate.lower()] = 1
        return candidate

    def reset(self) -> None:
        self._issued.clear()
