"""Standalone HTML rendering for archive snapshots."""
from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from typing import Sequence

from jinja2 import Environment

_jinja_env = Environment(autoescape=True)
Template = _jinja_env.from_string


def format_timestamp(value: datetime, tz: tzinfo = timezone.utc) -> str:
    """``Saturday, June 14, 2025 at 4:05 PM``"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    local = value.astimezone(tz)
    hour = local.hour % 12 or 12
    return (
        f"{local:%A}, {local:%B} {local.day}, {local.year} "
        f"at {hour}:{local:%M} {local:%p}"
    )


def format_export_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


DOCUMENT_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ title }}</title>
  <style>
    *, *::before, *::after { box-sizing: border-box; margin: 0; padding: 0; }
    body {
      font-family: 'Georgia', 'Times New Roman', serif;
      background: #faf8f5; color: #3a3330; line-height: 1.7; padding: 2rem 1rem;
    }
    .container { max-width: 800px; margin: 0 auto; }
    header {
      text-align: center; padding: 3rem 1rem 2rem;
      border-bottom: 1px solid #e0d5c8; margin-bottom: 2rem;
    }
    header h1 {
      font-size: 2.4rem; font-weight: 400; letter-spacing: 0.04em;
      color: #5c4a3a; margin-bottom: 0.4rem;
    }
    header .subtitle { font-style: italic; color: #8a7a6c; font-size: 1.05rem; }
    .stats {
      display: flex; justify-content: center; gap: 2rem;
      margin-top: 1.2rem; font-size: 0.9rem; color: #8a7a6c;
    }
    .stats span { font-weight: 600; color: #5c4a3a; }
    .section-heading {
      text-align: center; font-size: 1.3rem; font-weight: 400;
      color: #5c4a3a; margin: 2.5rem 0 1.5rem; letter-spacing: 0.05em;
    }
    .section-heading::before, .section-heading::after { content: ' \\2014 '; color: #c4b5a4; }
    .entry {
      background: #fff; border: 1px solid #e8e0d6; border-radius: 8px;
      padding: 1.5rem; margin-bottom: 1.2rem; box-shadow: 0 1px 3px rgba(0,0,0,0.04);
    }
    .entry-header {
      display: flex; justify-content: space-between; align-items: baseline;
      flex-wrap: wrap; gap: 0.5rem; margin-bottom: 0.5rem;
    }
    .entry-name { font-size: 1.15rem; font-weight: 600; color: #4a3c32; }
    .entry-date { font-size: 0.8rem; color: #a09080; font-style: italic; }
    .entry-note { white-space: pre-wrap; word-wrap: break-word; }
    .entry-photos { display: flex; flex-wrap: wrap; gap: 0.6rem; margin-top: 1rem; }
    .entry-photo {
      width: 180px; height: 180px; object-fit: cover; border-radius: 6px;
      border: 1px solid #e0d5c8; cursor: pointer; transition: transform 0.15s;
    }
    .entry-photo:hover { transform: scale(1.03); }
    .lightbox {
      display: none; position: fixed; inset: 0; background: rgba(0,0,0,0.85);
      z-index: 1000; justify-content: center; align-items: center; cursor: pointer;
    }
    .lightbox.active { display: flex; }
    .lightbox img {
      max-width: 92vw; max-height: 92vh; border-radius: 4px;
      box-shadow: 0 4px 30px rgba(0,0,0,0.4);
    }
    footer {
      text-align: center; margin-top: 3rem; padding: 2rem 1rem;
      border-top: 1px solid #e0d5c8; color: #a09080; font-size: 0.85rem; font-style: italic;
    }
    @media (max-width: 600px) {
      header h1 { font-size: 1.6rem; }
      .entry-photo { width: 120px; height: 120px; }
      .stats { flex-direction: column; gap: 0.3rem; }
    }
    @media print {
      .lightbox { display: none !important; }
      .entry { break-inside: avoid; }
      .entry-photo { width: 140px; height: 140px; }
    }
  </style>
</head>
<body>
  <div class="container">
    <header>
      <h1>{{ heading }}</h1>
      <p class="subtitle">{{ subtitle }}</p>
      <div class="stats">
        <div><span>{{ message_count }}</span> messages</div>
        <div><span>{{ photo_count }}</span> photos</div>
      </div>
    </header>
    <h2 class="section-heading">Messages</h2>
{% for entry in entries %}
    <div class="entry" id="entry-{{ entry.id }}">
      <div class="entry-header">
        <h3 class="entry-name">{{ entry.name }}</h3>
        <time class="entry-date" datetime="{{ entry.iso }}">{{ entry.display_date }}</time>
      </div>
      <p class="entry-note">{{ entry.note }}</p>
{%- if entry.photos %}
      <div class="entry-photos">{% for src in entry.photos %}<img src="{{ src }}" class="entry-photo" alt="Photo from {{ entry.name }}" onclick="openLightbox(this.src)" />{% endfor %}</div>
{%- endif %}
    </div>
{% endfor %}
    <footer>
      Archived on {{ export_date }}<br>
      Made with love.
    </footer>
  </div>
  <div class="lightbox" id="lightbox" onclick="closeLightbox()">
    <img id="lightbox-img" src="" alt="Full size photo" />
  </div>
  <script>
    function openLightbox(src) {
      document.getElementById('lightbox-img').src = src;
      document.getElementById('lightbox').classList.add('active');
    }
    function closeLightbox() {
      document.getElementById('lightbox').classList.remove('active');
    }
    document.addEventListener('keydown', e => { if (e.key === 'Escape') closeLightbox(); });
  </script>
</body>
</html>
""")

HEADING = "Wedding Guestbook"
SUBTITLE = "A Time Capsule of Love & Well Wishes"


def render_document(
    entries: Sequence,
    title: str,
    export_date: date,
    tz: tzinfo = timezone.utc,
) -> str:
    """Render archived entries into one self-contained HTML document.

    ``entries`` are :class:`~guestbook.archive.exporter.ArchivedEntry`
    objects in the order they should appear. Names and notes go through
    Jinja's autoescaping; photos are inlined as data URIs.
    """
    blocks = [
        {
            "id": entry.id,
            "name": entry.name,
            "note": entry.note,
            "iso": entry.created_at.isoformat(),
            "display_date": format_timestamp(entry.created_at, tz),
            "photos": [image.data_uri for image in entry.embedded],
        }
        for entry in entries
    ]
    return DOCUMENT_TEMPLATE.render(
        title=title,
        heading=HEADING,
        subtitle=SUBTITLE,
        entries=blocks,
        message_count=len(blocks),
        photo_count=sum(len(block["photos"]) for block in blocks),
        export_date=format_export_date(export_date),
    )
