"""
元数据编码 - XMP 包序列化与 EXIF 块构建

XMP 在内存中按 命名空间 → {属性: 值} 保存；
EXIF 按 标签名 → 值 保存（标签名取自 PIL.ExifTags.Base）。
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from PIL import ExifTags, Image

NS_X = "adobe:ns:meta/"
NS_RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
NS_XMP = "http://ns.adobe.com/xap/1.0/"
NS_XMP_MM = "http://ns.adobe.com/xap/1.0/mm/"
NS_DC = "http://purl.org/dc/elements/1.1/"
NS_PHOTOSHOP = "http://ns.adobe.com/photoshop/1.0/"
NS_CAMERA_RAW = "http://ns.adobe.com/camera-raw-settings/1.0/"

DOCUMENT_ANCESTORS = "DocumentAncestors"

_PREFIXES = {
    NS_X: "x",
    NS_RDF: "rdf",
    NS_XMP: "xmp",
    NS_XMP_MM: "xmpMM",
    NS_DC: "dc",
    NS_PHOTOSHOP: "photoshop",
    NS_CAMERA_RAW: "crs",
}

for _uri, _prefix in _PREFIXES.items():
    ET.register_namespace(_prefix, _uri)

_XPACKET_BEGIN = '<?xpacket begin="\ufeff" id="W5M0MpCehiHzreSzNTczkc9d"?>'
_XPACKET_END = '<?xpacket end="w"?>'


def serialize_xmp(xmp: dict[str, dict[str, str]]) -> bytes:
    """序列化为 XMP 包（所有属性写成 rdf:Description 的属性）"""
    root = ET.Element(f"{{{NS_X}}}xmpmeta")
    rdf = ET.SubElement(root, f"{{{NS_RDF}}}RDF")
    desc = ET.SubElement(rdf, f"{{{NS_RDF}}}Description", {f"{{{NS_RDF}}}about": ""})
    for namespace, props in xmp.items():
        for prop, value in props.items():
            desc.set(f"{{{namespace}}}{prop}", str(value))
    body = ET.tostring(root, encoding="unicode")
    return f"{_XPACKET_BEGIN}{body}{_XPACKET_END}".encode("utf-8")


def exif_tag(name: str) -> int:
    """EXIF 标签名 → 编号"""
    try:
        return ExifTags.Base[name].value
    except KeyError:
        raise ValueError(f"未知EXIF标签: {name}") from None


def build_exif(exif: dict[str, str]) -> bytes:
    """构建 EXIF 块"""
    block = Image.Exif()
    for name, value in exif.items():
        block[exif_tag(name)] = value
    return block.tobytes()
