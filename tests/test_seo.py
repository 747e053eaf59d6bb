from xml.etree import ElementTree

from dealership.routers.seo import SITE_URL, STATIC_PAGES, build_sitemap_entries

NS = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}


def test_robots(client):
    resp = client.get("/robots.txt")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")

    lines = resp.text.splitlines()
    assert lines[:2] == ["User-agent: *", "Allow: /"]
    assert "Disallow: /admin/" in lines
    assert "Disallow: /api/" in lines
    assert "Disallow: /_next/" in lines
    assert lines[-1] == f"Sitemap: {SITE_URL}/sitemap.xml"


def test_sitemap_entries(db, make_vehicle, make_post):
    active = make_vehicle()
    make_vehicle(status="draft")
    make_vehicle(status="sold")
    make_post("published-post")
    make_post("draft-post", status="draft")

    entries = build_sitemap_entries(db, "https://example.com")
    urls = [entry["url"] for entry in entries]

    assert len(entries) == len(STATIC_PAGES) + 2
    assert urls[0] == "https://example.com"
    assert f"https://example.com/fahrzeuge/{active.slug}" in urls
    assert "https://example.com/blog/published-post" in urls
    assert "https://example.com/blog/draft-post" not in urls

    home = entries[0]
    assert home["priority"] == 1.0
    assert home["change_frequency"] == "daily"


def test_sitemap_xml(client, make_vehicle):
    make_vehicle()

    resp = client.get("/sitemap.xml")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")

    root = ElementTree.fromstring(resp.content)
    locs = [loc.text for loc in root.findall("sm:url/sm:loc", NS)]
    assert len(locs) == len(STATIC_PAGES) + 1
    assert locs[0] == SITE_URL


def test_sitemap_keeps_static_pages_when_store_unreachable(unreachable_store):
    resp = unreachable_store.get("/sitemap.xml")
    assert resp.status_code == 200

    root = ElementTree.fromstring(resp.content)
    locs = [loc.text for loc in root.findall("sm:url/sm:loc", NS)]
    assert locs == [f"{SITE_URL}{path}" for path, _, _ in STATIC_PAGES]
