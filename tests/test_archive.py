"""Archive exporter tests: photo resolution, escaping, variants, determinism."""

import base64
import json
from datetime import date, datetime, timezone

import httpx
import pytest

from guestbook.archive import (
    ArchiveExporter,
    ArchivedEntry,
    CachedPhotoResolver,
    EmbeddedImage,
    MissingPhoto,
    RemotePhotoResolver,
    load_entries_from_backup,
    load_entries_from_store,
)
from guestbook.archive.photos import extension_for, photo_basename
from guestbook.archive.render import format_export_date, format_timestamp, render_document
from guestbook.errors import ExportError

EXPORT_DATE = date(2025, 7, 1)
PNG = b"\x89PNG\r\n\x1a\nfake-png-bytes"
JPEG = b"\xff\xd8\xfffake-jpeg-bytes"


def entry(entry_id, name="Guest", note="Hello", approved=True, photos=(), minute=0):
    return ArchivedEntry(
        id=entry_id,
        name=name,
        note=note,
        approved=approved,
        created_at=datetime(2025, 6, 14, 16, minute, tzinfo=timezone.utc),
        photo_urls=list(photos),
    )


def photo_server(missing=()):
    """An httpx client answering every photo URL except those in ``missing``."""

    def handler(request):
        url = str(request.url)
        if url in missing:
            return httpx.Response(404)
        if url.endswith(".png"):
            return httpx.Response(200, content=PNG, headers={"content-type": "image/png"})
        return httpx.Response(
            200, content=JPEG, headers={"content-type": "application/octet-stream"}
        )

    return httpx.Client(transport=httpx.MockTransport(handler))


def remote_exporter(tmp_path, client, **kwargs):
    out = tmp_path / "backup"
    return ArchiveExporter(out, RemotePhotoResolver(out / "photos", client), **kwargs)


# ---------------------------------------------------------------------------
# Photo resolution
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("image/jpeg", ".jpg"),
        ("image/png", ".png"),
        ("image/png; charset=binary", ".png"),
        ("IMAGE/WEBP", ".webp"),
        ("image/gif", ".gif"),
        ("image/heic", ".jpg"),
        (None, ".jpg"),
    ],
)
def test_extension_for_content_type(content_type, expected):
    assert extension_for(content_type) == expected


def test_photo_basename():
    assert photo_basename(12, 3) == "entry-12-photo-3"


def test_remote_resolver_saves_deterministic_file(tmp_path):
    photos_dir = tmp_path / "photos"
    photos_dir.mkdir()
    resolver = RemotePhotoResolver(photos_dir, photo_server())

    result = resolver.resolve(7, 2, "https://cdn.example/abc.png")

    assert isinstance(result, EmbeddedImage)
    assert result.filename == "entry-7-photo-2.png"
    assert (photos_dir / "entry-7-photo-2.png").read_bytes() == PNG
    assert result.data_uri == "data:image/png;base64," + base64.b64encode(PNG).decode()


def test_remote_resolver_unknown_type_defaults_to_jpeg(tmp_path):
    resolver = RemotePhotoResolver(tmp_path, photo_server())

    result = resolver.resolve(1, 1, "https://cdn.example/abc")

    assert result.filename == "entry-1-photo-1.jpg"
    assert result.media_type == "image/jpeg"


def test_remote_resolver_joins_site_relative_urls(tmp_path):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, content=PNG, headers={"content-type": "image/png"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    resolver = RemotePhotoResolver(tmp_path, client, site_url="https://guestbook.example")

    resolver.resolve(1, 1, "/uploads/guestbook/abc.png")

    assert seen == ["https://guestbook.example/uploads/guestbook/abc.png"]


def test_remote_resolver_failure_is_missing_photo(tmp_path):
    url = "https://cdn.example/gone.png"
    resolver = RemotePhotoResolver(tmp_path, photo_server(missing={url}))

    result = resolver.resolve(3, 1, url)

    assert isinstance(result, MissingPhoto)
    assert result.url == url
    assert list(tmp_path.iterdir()) == []


def test_cached_resolver_probes_extensions_in_order(tmp_path):
    (tmp_path / "entry-1-photo-1.png").write_bytes(PNG)
    (tmp_path / "entry-1-photo-1.jpg").write_bytes(JPEG)
    (tmp_path / "entry-1-photo-2.webp").write_bytes(b"RIFFwebp")
    resolver = CachedPhotoResolver(tmp_path)

    first = resolver.resolve(1, 1, "ignored")
    second = resolver.resolve(1, 2, "ignored")
    third = resolver.resolve(1, 3, "ignored")

    assert (first.filename, first.media_type, first.data) == ("entry-1-photo-1.jpg", "image/jpeg", JPEG)
    assert (second.filename, second.media_type) == ("entry-1-photo-2.webp", "image/webp")
    assert isinstance(third, MissingPhoto)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def test_format_timestamp():
    value = datetime(2025, 6, 14, 16, 5, tzinfo=timezone.utc)
    assert format_timestamp(value) == "Saturday, June 14, 2025 at 4:05 PM"


def test_format_timestamp_midnight_and_naive():
    assert format_timestamp(datetime(2025, 6, 15, 0, 30)) == "Sunday, June 15, 2025 at 12:30 AM"


def test_format_export_date():
    assert format_export_date(date(2025, 7, 1)) == "July 1, 2025"


def test_user_text_is_escaped():
    hostile = entry(
        1,
        name='<b onmouseover="x">Mallory</b>',
        note="<script>alert(1)</script> & more",
    )

    html = render_document([hostile], "Archive", EXPORT_DATE)

    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt; &amp; more" in html
    assert "&lt;b onmouseover=&#34;x&#34;&gt;Mallory&lt;/b&gt;" in html


def test_header_counts_and_footer():
    first = entry(1, photos=["a", "b"])
    first.embedded = [EmbeddedImage("image/png", PNG, "x.png")] * 2
    second = entry(2)

    html = render_document([first, second], "Archive", EXPORT_DATE)

    assert "<span>2</span> messages" in html
    assert "<span>2</span> photos" in html
    assert "Archived on July 1, 2025" in html
    assert html.count('class="entry-photo"') == 2
    assert html.index('id="entry-1"') < html.index('id="entry-2"')
    assert "https://" not in html.split("<body>")[1]


# ---------------------------------------------------------------------------
# Full export runs
# ---------------------------------------------------------------------------

def test_one_failed_photo_out_of_three(tmp_path):
    urls = [
        "https://cdn.example/1.png",
        "https://cdn.example/2.png",
        "https://cdn.example/3.png",
    ]
    exporter = remote_exporter(tmp_path, photo_server(missing={urls[1]}))
    entries = [entry(1, photos=urls)]

    summary = exporter.run(entries, export_date=EXPORT_DATE)

    assert len(entries[0].embedded) == 2
    assert [image.filename for image in entries[0].embedded] == [
        "entry-1-photo-1.png",
        "entry-1-photo-3.png",
    ]
    assert len(summary.missing) == 1
    raw = json.loads((exporter.raw_path).read_text(encoding="utf-8"))
    assert raw[0]["photo_urls"] == urls
    html = (exporter.output_dir / "time-capsule-full.html").read_text(encoding="utf-8")
    assert html.count('class="entry-photo"') == 2


def test_raw_export_fields(tmp_path):
    exporter = remote_exporter(tmp_path, photo_server())

    exporter.run([entry(4, name="Zoë", approved=False)], export_date=EXPORT_DATE)

    raw = json.loads(exporter.raw_path.read_text(encoding="utf-8"))
    assert raw == [
        {
            "id": 4,
            "name": "Zoë",
            "note": "Hello",
            "approved": False,
            "created_at": "2025-06-14T16:00:00+00:00",
            "photo_urls": [],
        }
    ]


def test_four_variants_with_excluded_test_entries(tmp_path):
    exporter = remote_exporter(tmp_path, photo_server(), excluded_ids={1, 2, 4})
    entries = [
        entry(1, minute=1),
        entry(2, approved=False, minute=2),
        entry(3, minute=3),
        entry(4, minute=4),
        entry(5, approved=False, minute=5),
        entry(6, minute=6),
    ]

    summary = exporter.run(entries, export_date=EXPORT_DATE)

    counts = {doc.filename: doc.entry_count for doc in summary.documents}
    assert counts == {
        "time-capsule-full-with-tests.html": 6,
        "time-capsule-public-with-tests.html": 4,
        "time-capsule-full.html": 3,
        "time-capsule-public.html": 2,
    }
    for doc in summary.documents:
        assert (exporter.output_dir / doc.filename).stat().st_size == doc.size_bytes


def test_without_excluded_ids_only_two_variants(tmp_path):
    exporter = remote_exporter(tmp_path, photo_server())

    summary = exporter.run([entry(1), entry(2, approved=False, minute=1)], export_date=EXPORT_DATE)

    assert [(d.filename, d.entry_count) for d in summary.documents] == [
        ("time-capsule-full.html", 2),
        ("time-capsule-public.html", 1),
    ]
    assert not (exporter.output_dir / "time-capsule-full-with-tests.html").exists()


def test_repeated_runs_are_identical(tmp_path):
    def run_once():
        exporter = remote_exporter(tmp_path, photo_server())
        entries = [
            entry(1, photos=["https://cdn.example/a.png", "https://cdn.example/b"]),
            entry(2, note="second", minute=3),
        ]
        exporter.run(entries, export_date=EXPORT_DATE)
        return {
            path.name: path.read_bytes()
            for path in exporter.output_dir.glob("*.html")
        }

    assert run_once() == run_once()


def test_offline_rerender_matches_online_run(tmp_path):
    exporter = remote_exporter(tmp_path, photo_server())
    entries = [
        entry(1, photos=["https://cdn.example/a.png", "https://cdn.example/b"]),
        entry(2, approved=False, minute=1),
    ]
    exporter.run(entries, export_date=EXPORT_DATE)
    online = (exporter.output_dir / "time-capsule-full.html").read_bytes()

    offline_entries = load_entries_from_backup(exporter.raw_path)
    offline = ArchiveExporter(exporter.output_dir, CachedPhotoResolver(exporter.photos_dir))
    offline.run(offline_entries, export_date=EXPORT_DATE, write_raw=False)

    assert (exporter.output_dir / "time-capsule-full.html").read_bytes() == online
    assert [len(e.embedded) for e in offline_entries] == [2, 0]


def test_backup_is_loaded_in_chronological_order(tmp_path):
    raw = tmp_path / "guestbook-data.json"
    raw.write_text(
        json.dumps(
            [
                {"id": 9, "name": "B", "note": "n", "approved": True,
                 "created_at": "2025-06-14T18:00:00Z", "photo_urls": []},
                {"id": 3, "name": "A", "note": "n", "approved": False,
                 "created_at": "2025-06-14T17:00:00+00:00", "photo_urls": ["u"]},
            ]
        ),
        encoding="utf-8",
    )

    entries = load_entries_from_backup(raw)

    assert [e.id for e in entries] == [3, 9]
    assert entries[0].photo_urls == ["u"]


def test_missing_backup_is_fatal(tmp_path):
    with pytest.raises(ExportError):
        load_entries_from_backup(tmp_path / "guestbook-data.json")


@pytest.mark.parametrize(
    "row",
    [
        {"id": 1, "name": "A", "note": "n", "approved": True, "photo_urls": []},
        {"id": 1, "name": "A", "note": "n", "approved": True, "created_at": "last tuesday"},
        "not-an-entry",
    ],
)
def test_malformed_backup_row_is_fatal(tmp_path, row):
    raw = tmp_path / "guestbook-data.json"
    raw.write_text(json.dumps([row]), encoding="utf-8")

    with pytest.raises(ExportError, match="Malformed entry #0"):
        load_entries_from_backup(raw)


def test_unwritable_output_dir_is_fatal(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("occupied")
    exporter = ArchiveExporter(blocker, CachedPhotoResolver(blocker / "photos"))

    with pytest.raises(ExportError):
        exporter.run([entry(1)], export_date=EXPORT_DATE)


def test_entries_from_store_oldest_first(store):
    first = store.insert("First", "one", ["http://a/1.jpg"], approved=True)
    second = store.insert("Second", "two", [], approved=False)

    entries = load_entries_from_store(store)

    assert [e.id for e in entries] == [first.id, second.id]
    assert entries[0].photo_urls == ["http://a/1.jpg"]
    assert entries[0].created_at.tzinfo is not None
    assert entries[1].approved is False
