"""Render processed records as a Markdown, HTML or JSON board.

The HTML variant is the Markdown board passed through ``markdown`` with
inline styles, so it renders the same in a browser or a mail client.
"""

from __future__ import annotations

import html
import json
import logging
import re
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

import markdown

from rumorboard.models import Record

logger = logging.getLogger(__name__)

FORMATS = ("md", "html", "json")
_DASH = "—"

_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>{title}</title></head>
<body style="margin:0; padding:0; background-color:#f6f6f6;">
<div style="max-width:760px; margin:24px auto; padding:32px 28px; background:#ffffff;
            border-radius:8px; border:1px solid #e0e0e0;
            font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Helvetica,Arial,sans-serif;
            font-size:15px; line-height:1.6; color:#1a1a1a;">
{body}
</div>
</body>
</html>
"""

_STYLE_OVERRIDES = {
    "h1": (
        "font-size:22px; font-weight:700; margin:0 0 8px 0; "
        "color:#111; border-bottom:2px solid #0d6efd; padding-bottom:8px;"
    ),
    "h2": "font-size:18px; font-weight:600; margin:24px 0 8px 0; color:#222;",
    "hr": "border:none; border-top:1px solid #ddd; margin:20px 0;",
    "a": "color:#0d6efd; text-decoration:none;",
    "ul": "padding-left:20px; margin:8px 0;",
    "li": "margin-bottom:4px;",
    "blockquote": "margin:8px 0; padding:4px 12px; border-left:3px solid #0d6efd; color:#333;",
    "p": "margin:8px 0;",
    "em": "color:#555;",
}


# ── Formatters ─────────────────────────────────────────────────────────────

def fmt_pct(value: float | None) -> str:
    if value is None:
        return _DASH
    return f"{round(value * 100)}%"


def fmt_hot(value: float | None) -> str:
    if value is None:
        return _DASH
    return str(round(value))


def fmt_date(value: datetime | None) -> str:
    if value is None:
        return _DASH
    return value.astimezone(UTC).strftime("%b %d, %Y %H:%M UTC")


def _counters(record: Record) -> str:
    m = record.selected_post.metrics if record.selected_post else None
    if m is None:
        return ""
    return (
        f"♥ {m.likes:,} · ⇄ {m.retweets:,} · 💬 {m.replies:,} · "
        f"❝ {m.quotes:,} · 🔖 {m.bookmarks:,} · 👁 {m.views:,}"
    )


def _esc(text: str) -> str:
    """Escape feed text; markdown passes raw HTML through unchanged."""
    return html.escape(text, quote=False)


def _card(record: Record, recent: bool) -> list[str]:
    status = record.status.value if record.status else _DASH
    origin = _esc(record.origin.name or record.origin.key or _DASH)
    dest = _esc(record.display_destination or record.destination.name or _DASH)
    hot = record.hotness_recent if recent else record.hotness_overall

    lines = [
        f"## {_esc(record.display_name or 'Unknown player')}",
        "",
        f"**{status}** · {origin} → {dest}",
        "",
        f"- Hotness{' (7d)' if recent else ''}: {fmt_hot(hot)}",
        f"- Certainty: {fmt_pct(record.display_certainty)}",
        f"- Last seen: {fmt_date(record.newest_post_at)}",
        "",
    ]
    post = record.selected_post
    if post is None:
        lines += ["_No post details available._", ""]
        return lines

    text = _esc(" ".join(post.text.split())) or _DASH
    author = f"{_esc(post.author_handle)} " if post.author_handle else ""
    lines += [
        f"> {text}",
        ">",
        f"> {author}[view post]({post.link})",
        "",
        _counters(record),
        "",
    ]
    return lines


def render_markdown(
    records: Sequence[Record],
    recent: bool = False,
    now: datetime | None = None,
    title: str = "Transfer Rumor Board",
) -> str:
    now = now or datetime.now(UTC)
    post_total = sum(len(r.posts) for r in records)
    lines = [
        f"# {title}",
        "",
        f"_{len(records):,} rumors · {post_total:,} posts · built {fmt_date(now)}_",
        "",
    ]
    for record in records:
        lines.append("---")
        lines.append("")
        lines += _card(record, recent)
    return "\n".join(lines).rstrip() + "\n"


def render_html(md_text: str, title: str = "Transfer Rumor Board") -> str:
    """Convert the Markdown board to standalone HTML with inline styles."""
    body = markdown.markdown(md_text, extensions=["tables"], output_format="html")
    for tag, style in _STYLE_OVERRIDES.items():
        body = re.sub(rf"<{tag}(?=[\s>])", f'<{tag} style="{style}"', body)
    return _HTML_TEMPLATE.format(title=html.escape(title), body=body)


def render_json(records: Sequence[Record]) -> str:
    return json.dumps(
        [r.model_dump(mode="json") for r in records],
        ensure_ascii=False,
        indent=2,
    )


def render(
    records: Sequence[Record],
    fmt: str = "md",
    recent: bool = False,
    now: datetime | None = None,
) -> str:
    if fmt not in FORMATS:
        raise ValueError(f"Unknown board format {fmt!r}; expected one of {', '.join(FORMATS)}")
    if fmt == "json":
        return render_json(records)
    md_text = render_markdown(records, recent=recent, now=now)
    return render_html(md_text) if fmt == "html" else md_text


def write_board(
    records: Sequence[Record],
    *,
    output_dir: Path,
    fmt: str = "md",
    recent: bool = False,
    now: datetime | None = None,
) -> Path:
    """Write ``board-YYYYMMDD-HHMM.<ext>`` into *output_dir* and return its path."""
    now = now or datetime.now(UTC)
    content = render(records, fmt=fmt, recent=recent, now=now)
    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_dir / f"board-{now:%Y%m%d-%H%M}.{fmt}"
    out_path.write_text(content, encoding="utf-8")
    logger.info("Wrote %d records to %s", len(records), out_path)
    return out_path
