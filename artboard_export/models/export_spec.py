"""
导出格式模型 - 每种编码的封闭选项结构

替代宿主的动态描述符字典：每个字段显式列出，不可变。
JPEG 质量使用宿主的 0-12 刻度。
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .document import RenderingIntent

CANONICAL_PROFILE = "sRGB IEC61966-2.1"


class Codec(str, Enum):
    """输出编码"""
    WEBP = "webp"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        """文件扩展名（强制小写）"""
        return "jpg" if self is Codec.JPEG else "webp"

    @property
    def label(self) -> str:
        return "JPEG" if self is Codec.JPEG else "WebP"


class WebPExportOptions(BaseModel):
    """WebP 导出选项"""
    model_config = ConfigDict(frozen=True)

    lossy: bool = True
    quality: int = Field(100, ge=0, le=100)
    include_xmp: bool = True
    include_exif: bool = True
    include_extras: bool = True


class JPEGExportOptions(BaseModel):
    """JPEG 导出选项"""
    model_config = ConfigDict(frozen=True)

    quality: int = Field(12, ge=0, le=12)
    baseline: bool = True
    embed_color_profile: bool = True
    matte: None = None                  # 不做 matte 合成
    include_metadata: bool = False


class ColorConversionOptions(BaseModel):
    """颜色配置文件转换选项"""
    model_config = ConfigDict(frozen=True)

    profile: str = CANONICAL_PROFILE
    intent: RenderingIntent = RenderingIntent.RELATIVE_COLORIMETRIC
    black_point_compensation: bool = False
    dither: bool = False


class ExportFormatSpec(BaseModel):
    """一次批次请求的编码组合"""
    model_config = ConfigDict(frozen=True)

    webp: WebPExportOptions = Field(default_factory=WebPExportOptions)
    jpeg: JPEGExportOptions | None = None

    @property
    def codecs(self) -> tuple[Codec, ...]:
        if self.jpeg is None:
            return (Codec.WEBP,)
        return (Codec.JPEG, Codec.WEBP)
