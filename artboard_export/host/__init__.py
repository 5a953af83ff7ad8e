"""
宿主模块 - 宿主能力接口的具体实现

子模块：
- layers: 内存图层树与文档状态
- pixels: 模式/位深转换与合成
- metadata: XMP/EXIF 编码
- manifest: YAML 文档清单加载
- pillow_host: 基于 Pillow 的宿主实现
"""

from .manifest import DocumentManifest, load_document, load_manifest
from .pillow_host import PillowHost

__all__ = [
    "DocumentManifest",
    "PillowHost",
    "load_document",
    "load_manifest",
]
