import pytest

from trivia.errors import UpstreamUnavailable
from trivia.models import ShellType
from trivia.providers.tankopedia import TankopediaProvider, parse_page, parse_vehicle

IS7 = {
    "tank_id": 7169,
    "name": "IS-7",
    "images": {"big_icon": "https://example.invalid/is7.png"},
    "default_profile": {
        "ammo": [
            {"type": "ARMOR_PIERCING", "damage": [368, 490, 613], "penetration": [189, 252, 315]},
            {"type": "ARMOR_PIERCING_CR", "damage": [368, 490, 613], "penetration": [227, 303, 379]},
        ]
    },
}


def test_parse_vehicle_uses_first_ammo_slot():
    candidate = parse_vehicle(IS7)

    assert candidate.id == "7169"
    assert candidate.name == "IS-7"
    assert candidate.ammo.type is ShellType.ARMOR_PIERCING
    assert candidate.ammo.max_damage == 490
    assert candidate.ammo.describe() == "AP 490"
    assert candidate.image_url == "https://example.invalid/is7.png"


def test_parse_vehicle_rejects_unknown_shell():
    broken = dict(IS7, default_profile={"ammo": [{"type": "PLASMA", "damage": [1, 2, 3]}]})

    with pytest.raises(UpstreamUnavailable):
        parse_vehicle(broken)


def test_parse_page_reads_items_and_page_total():
    payload = {
        "status": "ok",
        "meta": {"count": 1, "page_total": 84, "total": 84, "limit": 1, "page": 3},
        "data": {"7169": IS7},
    }

    page = parse_page(payload, 3)

    assert [c.name for c in page.items] == ["IS-7"]
    assert page.total_pages == 84
    assert page.total_count == 1


def test_parse_page_error_status_is_upstream_failure():
    payload = {"status": "error", "error": {"code": 407, "message": "INVALID_APPLICATION_ID"}}

    with pytest.raises(UpstreamUnavailable) as exc_info:
        parse_page(payload, 5)
    assert exc_info.value.page_number == 5


def test_page_url_fills_application_id_and_page():
    provider = TankopediaProvider("abc123")

    url = provider.page_url(17)

    assert "application_id=abc123" in url
    assert "page_no=17" in url
    assert "pageNumber" not in url
