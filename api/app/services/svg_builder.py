"""Minimal SVG element builder.

Every text node and attribute value goes through ``escape_xml`` on render, so
callers never concatenate markup by hand.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

_XML_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    "'": "&apos;",
    '"': "&quot;",
}

AttrValue = Union[str, int, float]


def escape_xml(value: object) -> str:
    return "".join(_XML_ESCAPES.get(ch, ch) for ch in str(value))


def fmt_num(value: float) -> str:
    """Render a coordinate without float noise (``20.0`` -> ``20``)."""
    if isinstance(value, int):
        return str(value)
    rounded = round(float(value), 3)
    if rounded.is_integer():
        return str(int(rounded))
    return f"{rounded:.3f}".rstrip("0").rstrip(".")


def _attr_value(value: AttrValue) -> str:
    if isinstance(value, float):
        return fmt_num(value)
    return str(value)


class Element:
    """An SVG/XML element with attributes, child elements and optional text."""

    def __init__(self, tag: str, text: Optional[object] = None, **attrs: Optional[AttrValue]) -> None:
        self.tag = tag
        self.text = None if text is None else str(text)
        self.attrs: dict[str, str] = {}
        self.children: list[Element] = []
        self.set(**attrs)

    def set(self, **attrs: Optional[AttrValue]) -> "Element":
        # Python identifiers can't contain '-', so font_size -> font-size.
        for key, value in attrs.items():
            if value is None:
                continue
            name = key.rstrip("_").replace("_", "-")
            self.attrs[name] = _attr_value(value)
        return self

    def add(self, *children: "Element") -> "Element":
        self.children.extend(children)
        return self

    def extend(self, children: Iterable["Element"]) -> "Element":
        self.children.extend(children)
        return self

    def render(self) -> str:
        attrs = "".join(f' {name}="{escape_xml(value)}"' for name, value in self.attrs.items())
        if self.text is None and not self.children:
            return f"<{self.tag}{attrs}/>"
        body = escape_xml(self.text) if self.text is not None else ""
        body += "".join(child.render() for child in self.children)
        return f"<{self.tag}{attrs}>{body}</{self.tag}>"

    def __str__(self) -> str:
        return self.render()


def svg(width: AttrValue, height: AttrValue, *, view_box: bool = True) -> Element:
    root = Element("svg", width=width, height=height, xmlns="http://www.w3.org/2000/svg")
    if view_box:
        root.set(viewBox=f"0 0 {_attr_value(width)} {_attr_value(height)}")
    return root


def style(*blocks: str) -> Element:
    return Element("style", "\n".join(blocks))


def text(content: object, **attrs: Optional[AttrValue]) -> Element:
    return Element("text", content, **attrs)


def group(*children: Element, **attrs: Optional[AttrValue]) -> Element:
    return Element("g", **attrs).add(*children)


def rect(**attrs: Optional[AttrValue]) -> Element:
    return Element("rect", **attrs)


def path(d: str, **attrs: Optional[AttrValue]) -> Element:
    return Element("path", d=d, **attrs)


def image(href: str, **attrs: Optional[AttrValue]) -> Element:
    return Element("image", href=href, **attrs)
