"""
文档模型 - 宿主文档/画板/检查点的只读视图

核心组件只通过这些句柄与宿主交互，不持有宿主内部对象：
- DocumentHandle: 文档句柄（替代宿主的 activeDocument 全局状态）
- ArtboardHandle: 枚举时捕获的画板快照
- CheckpointToken: 历史记录检查点
- DocumentInfo: 文档状态快照（名称/颜色模式/位深/图层树）
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ColorMode(str, Enum):
    """文档颜色模式"""
    RGB = "rgb"
    CMYK = "cmyk"
    GRAYSCALE = "grayscale"
    INDEXED = "indexed"


class LayerKind(str, Enum):
    """图层类型"""
    PIXEL = "pixel"
    GROUP = "group"
    ARTBOARD = "artboard"
    PLACED = "placed"       # 智能对象（嵌入内容）


class MetadataKind(str, Enum):
    """可清理的元数据类别"""
    ALL_XMP = "all_xmp"                         # 全部描述性XMP
    CAMERA_RAW = "camera_raw"                   # Camera Raw 命名空间
    DOCUMENT_ANCESTORS = "document_ancestors"   # photoshop:DocumentAncestors


class RenderingIntent(str, Enum):
    """ICC 渲染意图"""
    PERCEPTUAL = "perceptual"
    RELATIVE_COLORIMETRIC = "relative_colorimetric"
    SATURATION = "saturation"
    ABSOLUTE_COLORIMETRIC = "absolute_colorimetric"

    @property
    def lcms_value(self) -> int:
        """LittleCMS 意图编号"""
        return list(RenderingIntent).index(self)


class DocumentHandle(BaseModel):
    """文档句柄"""
    model_config = ConfigDict(frozen=True)

    doc_id: str


class ArtboardHandle(BaseModel):
    """画板句柄（枚举快照，批次内不变）"""
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="枚举时在图层栈中的位置")
    name: str
    layer_id: str


class CheckpointToken(BaseModel):
    """检查点令牌"""
    model_config = ConfigDict(frozen=True)

    doc_id: str
    history_index: int = Field(..., ge=0)
    label: str = ""


class LayerInfo(BaseModel):
    """图层树节点（只读）"""
    name: str
    kind: LayerKind
    locked: bool = False
    children: list[LayerInfo] = Field(default_factory=list)


class DocumentInfo(BaseModel):
    """文档状态快照"""
    doc_id: str
    name: str
    mode: ColorMode
    bits_per_channel: int
    width: int
    height: int
    icc_profile_name: str | None = None
    layers: list[LayerInfo] = Field(default_factory=list)
    history_length: int = 0

    @property
    def layer_count(self) -> int:
        """递归统计图层数"""
        def _count(nodes: list[LayerInfo]) -> int:
            return sum(1 + _count(n.children) for n in nodes)

        return _count(self.layers)
