"""Link preview cards rendered from `Metadata`.

A card is an optional image, the title, the description and the link. A
failed or missing fetch still yields a card holding just the link.
"""

from __future__ import annotations

import html
from typing import Callable, Dict, List, Optional

from richtext.links.metadata_types import Metadata


PREVIEW_FORMATS = ("html", "markdown", "text")


def _html(title: str, description: str, image: Optional[str], link: str) -> str:
    parts: List[str] = [f'<a href="{html.escape(link)}" target="_blank" rel="noopener">']
    if image:
        parts.append(f'<img src="{html.escape(image)}" alt="{html.escape(title)}" style="max-width:200px;"><br>')
    if title:
        parts.append(f"<strong>{html.escape(title)}</strong>")
    parts.append("</a>")
    if description:
        parts.append(f"<p>{html.escape(description)}</p>")
    return "".join(parts)


def _markdown(title: str, description: str, image: Optional[str], link: str) -> str:
    lines: List[str] = []
    if image:
        lines.append(f"[![]({image})]({link})")
    if title:
        lines.append(f"**{title}**")
    if description:
        lines.append(description)
    lines.append(f"[{link}]({link})")
    return "\n".join(lines)


def _text(title: str, description: str, image: Optional[str], link: str) -> str:
    return "\n".join(s for s in (title, description, link) if s)


_RENDERERS: Dict[str, Callable[[str, str, Optional[str], str], str]] = {
    "html": _html,
    "markdown": _markdown,
    "text": _text,
}


def render_preview(metadata: Optional[Metadata], url: str, fmt: str = "html") -> str:
    """Render one preview card. `url` is used when the metadata has none."""
    try:
        render = _RENDERERS[fmt]
    except KeyError:
        raise ValueError(f"unknown preview format {fmt!r}; expected one of {', '.join(PREVIEW_FORMATS)}") from None
    md = metadata if metadata is not None else Metadata()
    return render(md.title or "", md.description or "", md.image, md.url or url)
