"""
单画板处理模块 - 枚举/隔离/元数据清理/颜色规范化/命名/导出

子模块：
- enumerator: 画板快照
- isolator: 画板 → 独立扁平文档
- sanitizer: 元数据清理（尽力而为）
- color: RGB / 8位规范化（尽力而为）
- naming: 导出文件名
- exporter: WebP/JPEG 写出
"""

from .color import ColorNormalizer
from .enumerator import ArtboardEnumerator
from .exporter import Exporter
from .isolator import LayerIsolator
from .naming import NameResolver, base_name
from .sanitizer import MetadataSanitizer

__all__ = [
    "ArtboardEnumerator",
    "LayerIsolator",
    "MetadataSanitizer",
    "ColorNormalizer",
    "NameResolver",
    "Exporter",
    "base_name",
]
