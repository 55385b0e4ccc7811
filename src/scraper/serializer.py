"""DOM-to-document serialization.

The walk runs inside the page through ``page.evaluate``: the host sends the
selector and the element classification table across and gets plain data back.
The page emits a flat, pre-order list of node records (each naming its parent's
index) which :func:`assemble_tree` turns into nested :class:`ContentNode` dicts
with a loop, so neither side recurses per level of markup.
"""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import Error as PlaywrightError

from .errors import ValidationError, is_selector_syntax_error
from .models import ContentNode, ElementKind, SerializedPage
from .session import BrowserSession

logger = logging.getLogger(__name__)

SVG_NAMESPACE = "http://www.w3.org/2000/svg"

# Tags (lower-cased) with element-specific fields
TAG_KINDS: dict[str, ElementKind] = {
    "img": ElementKind.IMAGE,
    "a": ElementKind.ANCHOR,
}

EXCLUDED_ATTRIBUTES = frozenset({"style"})

ROOT_PARENT = -1

# SVG elements are dropped when their parent is expanded, before any of their
# fields are read, so nothing below an <svg> is ever visited.
_SERIALIZE_SCRIPT = """
({selector, svgNamespace, tagKinds, kinds, excludedAttributes, rootParent}) => {
  const classify = (el) => {
    const tag = el.tagName.toLowerCase();
    if (el.namespaceURI === svgNamespace || tag === 'svg') return kinds.svg;
    return tagKinds[tag] || kinds.generic;
  };

  const record = (el, kind, parent) => {
    const node = {
      tag: el.tagName.toLowerCase(),
      text: (el.textContent || '').trim(),
      parent,
    };

    const attributes = {};
    let kept = 0;
    for (const attr of Array.from(el.attributes)) {
      if (excludedAttributes.includes(attr.name)) continue;
      attributes[attr.name] = attr.value;
      kept++;
    }
    if (kept > 0) node.attributes = attributes;

    if (kind === kinds.image) {
      node.src = typeof el.src === 'string' ? el.src : (el.getAttribute('src') || '');
      node.alt = typeof el.alt === 'string' ? el.alt : (el.getAttribute('alt') || '');
    } else if (kind === kinds.anchor) {
      node.href = typeof el.href === 'string' ? el.href : (el.getAttribute('href') || '');
    }
    return node;
  };

  const page = {url: window.location.href, title: document.title, nodes: []};

  const root = document.querySelector(selector);
  if (!root) {
    return {...page, error: `Element not found: ${selector}`};
  }
  const rootKind = classify(root);
  if (rootKind === kinds.svg) {
    return {...page, error: `Element is an SVG element: ${selector}`};
  }

  const nodes = page.nodes;
  const stack = [[root, rootKind, rootParent]];
  while (stack.length > 0) {
    const [el, kind, parent] = stack.pop();
    const index = nodes.length;
    nodes.push(record(el, kind, parent));
    const children = Array.from(el.children);
    for (let i = children.length - 1; i >= 0; i--) {
      const childKind = classify(children[i]);
      if (childKind === kinds.svg) continue;
      stack.push([children[i], childKind, index]);
    }
  }
  return page;
}
"""


def script_args(selector: str) -> dict[str, Any]:
    """Arguments passed alongside the serialization script."""
    return {
        "selector": selector,
        "svgNamespace": SVG_NAMESPACE,
        "tagKinds": {tag: kind.value for tag, kind in TAG_KINDS.items()},
        "kinds": {kind.name.lower(): kind.value for kind in ElementKind},
        "excludedAttributes": sorted(EXCLUDED_ATTRIBUTES),
        "rootParent": ROOT_PARENT,
    }


def assemble_tree(records: list[dict[str, Any]]) -> ContentNode | None:
    """Nest pre-order node records into a single :class:`ContentNode` tree.

    Each record names its parent by index; the first record is the root.
    Children keep the order in which they appear in *records*.
    """
    nodes: list[ContentNode] = []
    for record in records:
        parent = record.get("parent", ROOT_PARENT)
        node: ContentNode = {k: v for k, v in record.items() if k != "parent"}  # type: ignore[assignment]
        node["children"] = []
        if parent != ROOT_PARENT:
            if not 0 <= parent < len(nodes):
                raise ValueError(f"node record {len(nodes)} points at unknown parent {parent}")
            nodes[parent]["children"].append(node)
        elif nodes:
            raise ValueError("more than one root node record")
        nodes.append(node)
    return nodes[0] if nodes else None


async def serialize(session: BrowserSession, selector: str) -> SerializedPage:
    """Serialize the first element matching *selector* in the loaded page.

    A selector that matches nothing is a soft outcome: ``content`` is ``None``
    and ``error`` names the selector. An unparseable selector raises
    :class:`ValidationError`.
    """
    try:
        data = await session.page.evaluate(_SERIALIZE_SCRIPT, script_args(selector))
    except PlaywrightError as exc:
        if is_selector_syntax_error(exc):
            raise ValidationError(f"Invalid selector: {selector}") from exc
        raise

    error = data.get("error")
    if error:
        logger.info("selector matched nothing usable", extra={"selector": selector, "reason": error})
        content = None
    else:
        records = data.get("nodes", [])
        content = assemble_tree(records)
        logger.debug("page serialized", extra={"selector": selector, "node_count": len(records)})

    return SerializedPage(
        url=data.get("url", ""),
        title=data.get("title", ""),
        content=content,
        error=error,
    )
