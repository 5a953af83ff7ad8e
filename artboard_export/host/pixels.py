"""
像素工具 - 模式/位深转换与合成

依赖：
- Pillow: 图像模式转换与 alpha 合成
"""

from __future__ import annotations

from collections.abc import Iterable

from PIL import Image

from ..models import ColorMode

HIGH_BIT_MODES = ("I;16", "I;16B", "I;16L", "I", "F")

# 每种颜色模式下像素图层的 PIL 存储模式
PIXEL_MODES: dict[ColorMode, str] = {
    ColorMode.RGB: "RGBA",
    ColorMode.CMYK: "CMYK",
    ColorMode.GRAYSCALE: "LA",
    ColorMode.INDEXED: "P",
}


def to_eight_bit(image: Image.Image) -> Image.Image:
    """16/32位单通道 → 8位灰度"""
    if image.mode == "F":
        # 浮点数据按 0.0-1.0 处理
        return image.point(lambda v: v * 255).convert("L")
    if image.mode != "I":
        image = image.convert("I")
    return image.point(lambda v: v * (1 / 257)).convert("L")


def as_rgba(image: Image.Image) -> Image.Image:
    if image.mode in HIGH_BIT_MODES:
        image = to_eight_bit(image)
    return image if image.mode == "RGBA" else image.convert("RGBA")


def to_pixel_mode(image: Image.Image, mode: ColorMode) -> Image.Image:
    """转换到文档颜色模式对应的存储模式"""
    target = PIXEL_MODES[mode]
    if image.mode == target:
        return image
    if image.mode in HIGH_BIT_MODES:
        image = to_eight_bit(image)
    if target in ("CMYK", "P"):
        # 两者都不带透明度
        rgb = image.convert("RGB")
        return rgb.convert("CMYK") if target == "CMYK" else rgb.convert("P", palette=Image.Palette.ADAPTIVE)
    return image.convert(target)


def composite(size: tuple[int, int], layers: Iterable[tuple[Image.Image, tuple[int, int]]]) -> Image.Image:
    """按绘制顺序合成到透明画布（超出画布部分裁掉）"""
    width, height = size
    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    for image, (x, y) in layers:
        rgba = as_rgba(image)
        sx, sy = max(0, -x), max(0, -y)
        dx, dy = max(0, x), max(0, y)
        if sx >= rgba.width or sy >= rgba.height or dx >= width or dy >= height:
            continue
        canvas.alpha_composite(rgba, dest=(dx, dy), source=(sx, sy))
    return canvas


def flatten_on_white(image: Image.Image) -> Image.Image:
    """去除透明度（不做matte，透明区域为白色）"""
    rgba = as_rgba(image)
    flat = Image.new("RGB", rgba.size, (255, 255, 255))
    flat.paste(rgba, mask=rgba.getchannel("A"))
    return flat
