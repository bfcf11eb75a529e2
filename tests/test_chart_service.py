"""Dashboard chart aggregation tests."""

from datetime import timedelta
from itertools import count

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from conftest import NOW
from mediahub.core.cache import CHARTS_PREFIX, CacheKeys, CacheService
from mediahub.core.exceptions import ChartQueryError, InvalidChartTypeError, ValidationError
from mediahub.models import Beat, Category, Country, MediaContact
from mediahub.services.activity_service import ActivityTrackingService
from mediahub.services.chart_service import (
    BLUE_SHADES,
    TOP_COUNTRIES_LIMIT,
    VERIFIED_COLOR,
    DashboardChartsService,
)


@pytest.fixture
def add_contact(db: Session):
    """Factory inserting a contact with its classifications, created in order."""
    sequence = count()
    rows: dict[tuple[type, str], object] = {}

    def _get(model, name, **extra):
        key = (model, name)
        if key not in rows:
            rows[key] = model(name=name, **extra)
            db.add(rows[key])
        return rows[key]

    def _add_contact(
        categories=(),
        countries=(),
        beats=(),
        age_days: float = 1,
        verified: bool = False,
        category_colors: dict[str, str] | None = None,
    ) -> MediaContact:
        n = next(sequence)
        colors = category_colors or {}
        contact = MediaContact(
            name=f"Contact {n}",
            email=f"contact{n}@example.com",
            email_verified_status=verified,
            created_at=NOW - timedelta(days=age_days) + timedelta(seconds=n),
        )
        contact.categories = [_get(Category, name, color=colors.get(name)) for name in categories]
        contact.countries = [
            _get(Country, name, code=name[:2].upper(), flag_emoji="🏳") for name in countries
        ]
        contact.beats = [_get(Beat, name, description=f"{name} desk") for name in beats]
        db.add(contact)
        db.commit()
        return contact

    return _add_contact


def _as_dict(points) -> dict[str, int]:
    return {point.label: point.value for point in points}


def test_contact_counts_in_every_category(charts_service, add_contact) -> None:
    """Two contacts, three category memberships: totals exceed the population."""
    add_contact(categories=["Tech", "Business"])
    add_contact(categories=["Tech"])

    data = charts_service.get_chart_data("category", "30d")

    assert _as_dict(data) == {"Tech": 2, "Business": 1}
    assert sum(point.value for point in data) == 3


def test_category_colors(charts_service, add_contact) -> None:
    add_contact(categories=["Tech"], category_colors={"Tech": "#FF0000"})
    add_contact(categories=["Business"])

    colors = {point.label: point.color for point in charts_service.get_contacts_by_category()}

    assert colors["Tech"] == "#FF0000"
    assert colors["Business"] == BLUE_SHADES[1]


def test_window_excludes_older_contacts(charts_service, add_contact) -> None:
    add_contact(categories=["Tech"], age_days=40)
    add_contact(categories=["Tech"], age_days=3)

    assert _as_dict(charts_service.get_chart_data("category", "30d")) == {"Tech": 1}
    assert _as_dict(charts_service.get_chart_data("category", "7d")) == {"Tech": 1}
    assert _as_dict(charts_service.get_chart_data("category", "3m")) == {"Tech": 2}


def test_contacts_without_memberships_add_nothing(charts_service, add_contact) -> None:
    add_contact()
    assert charts_service.get_chart_data("beat", "1y") == []


def test_country_chart_keeps_top_ten_by_count(charts_service, add_contact) -> None:
    names = [f"Country {i:02d}" for i in range(12)]
    # contact k belongs to countries k..11, so country j has j + 1 contacts
    for k in range(12):
        add_contact(countries=names[k:])

    data = charts_service.get_contacts_by_country("30d")

    assert len(data) == TOP_COUNTRIES_LIMIT
    assert [point.label for point in data] == list(reversed(names))[:TOP_COUNTRIES_LIMIT]
    assert [point.value for point in data] == list(range(12, 2, -1))


def test_country_ties_keep_first_seen_order(charts_service, add_contact) -> None:
    add_contact(countries=["France"])
    add_contact(countries=["Germany"])
    add_contact(countries=["Germany"])
    add_contact(countries=["Spain"])

    data = charts_service.get_chart_data("country")

    assert [(p.label, p.value) for p in data] == [("Germany", 2), ("France", 1), ("Spain", 1)]
    assert data[0].metadata == {"countryCode": "GE", "countryName": "Germany", "flagEmoji": "🏳"}


def test_beat_chart_is_not_sorted(charts_service, add_contact) -> None:
    add_contact(beats=["Politics"])
    add_contact(beats=["Sports"])
    add_contact(beats=["Sports"])

    data = charts_service.get_contacts_by_beat()

    assert [(p.label, p.value) for p in data] == [("Politics", 1), ("Sports", 2)]
    assert data[0].color == BLUE_SHADES[0]
    assert data[1].metadata == {"description": "Sports desk"}


def test_trending_beats_sorted_with_trend(charts_service, add_contact) -> None:
    add_contact(beats=["Politics"])
    add_contact(beats=["Sports"])
    add_contact(beats=["Sports"])

    data = charts_service.get_chart_data("trending_beats", "7d")

    assert [p.label for p in data] == ["Sports", "Politics"]
    assert all(p.metadata["trend"] == "up" for p in data)


def test_email_verification_chart(charts_service, add_contact) -> None:
    add_contact(verified=True)
    add_contact(verified=True)

    data = charts_service.get_chart_data("email_verification", "30d")

    assert [(p.label, p.value) for p in data] == [("Verified", 2)]
    assert data[0].color == VERIFIED_COLOR

    add_contact(verified=False)
    assert _as_dict(charts_service.get_chart_data("email_verification")) == {
        "Verified": 2,
        "Unverified": 1,
    }


@pytest.mark.parametrize("chart_type", ["bogus", "", "CATEGORY"])
def test_unknown_chart_type_is_rejected(charts_service, chart_type) -> None:
    with pytest.raises(InvalidChartTypeError, match="Invalid chart type"):
        charts_service.get_chart_data(chart_type)


def test_unknown_chart_type_is_a_validation_error(charts_service) -> None:
    with pytest.raises(ValidationError):
        charts_service.get_chart_data("bogus", "30d")


def test_unknown_time_range_is_rejected(charts_service) -> None:
    with pytest.raises(ValidationError, match="Invalid time range"):
        charts_service.get_chart_data("category", "2w")


def test_chart_storage_failure(charts_service, db) -> None:
    db.execute(text("DROP TABLE media_contacts"))
    db.commit()
    with pytest.raises(ChartQueryError):
        charts_service.get_chart_data("category")


# ============== Caching ==============
def test_chart_served_from_cache_until_cleared(db, clock, cache: CacheService, add_contact) -> None:
    service = DashboardChartsService(db, cache=cache, clock=clock)
    add_contact(categories=["Tech"])
    assert _as_dict(service.get_chart_data("category")) == {"Tech": 1}
    assert cache.get(CacheKeys.chart("category", "30d")) is not None

    add_contact(categories=["Tech"])
    assert _as_dict(service.get_chart_data("category")) == {"Tech": 1}

    cache.clear_by_prefix(CHARTS_PREFIX)
    assert _as_dict(service.get_chart_data("category")) == {"Tech": 2}


def test_chart_cache_expires(db, clock, cache: CacheService, cache_timer, add_contact) -> None:
    service = DashboardChartsService(db, cache=cache, clock=clock)
    add_contact(beats=["Politics"])
    service.get_chart_data("beat", "1y")
    add_contact(beats=["Politics"])

    cache_timer.advance(cache.default_ttl * 100)

    assert _as_dict(service.get_chart_data("beat", "1y")) == {"Politics": 2}


def test_contact_activity_invalidates_charts(db, clock, cache: CacheService, add_contact) -> None:
    charts = DashboardChartsService(db, cache=cache, clock=clock)
    activity = ActivityTrackingService(db, cache=cache, clock=clock)
    charts.get_chart_data("category")

    contact = add_contact(categories=["Tech"])
    activity.log_activity("create", "media_contact", contact.id, contact.name, "admin")

    assert _as_dict(charts.get_chart_data("category")) == {"Tech": 1}


def test_cache_keys_separate_windows(db, clock, cache: CacheService, add_contact) -> None:
    service = DashboardChartsService(db, cache=cache, clock=clock)
    add_contact(categories=["Tech"], age_days=40)

    assert service.get_chart_data("category", "30d") == []
    assert _as_dict(service.get_chart_data("category", "3m")) == {"Tech": 1}


# ============== Geographic distribution ==============
def _place(db: Session, coordinates: dict[str, tuple[float, float]]) -> None:
    for name, (latitude, longitude) in coordinates.items():
        country = db.query(Country).filter_by(name=name).one()
        country.latitude, country.longitude = latitude, longitude
    db.commit()


def test_geographic_distribution(charts_service, add_contact, db) -> None:
    add_contact(countries=["France", "Germany"])
    add_contact(countries=["Germany"], age_days=400)
    add_contact(countries=["Atlantis"])
    _place(db, {"France": (46.2, 2.2), "Germany": (51.2, 10.4)})
    db.add(Country(name="Spain", code="ES", latitude=40.4, longitude=-3.7))
    db.commit()

    data = charts_service.get_geographic_distribution()

    assert [(p.countryName, p.contactCount) for p in data] == [("Germany", 2), ("France", 1)]
    assert data[0].countryCode == "GE"
    assert data[0].coordinates == (10.4, 51.2)
    assert data[0].flagEmoji == "🏳"


def test_geographic_ties_ordered_by_name(charts_service, add_contact, db) -> None:
    add_contact(countries=["Kenya"])
    add_contact(countries=["Egypt"])
    _place(db, {"Kenya": (0.0, 37.9), "Egypt": (26.8, 30.8)})

    data = charts_service.get_geographic_distribution()

    assert [p.countryName for p in data] == ["Egypt", "Kenya"]


def test_geographic_distribution_cached_until_contact_activity(
    db, clock, cache: CacheService, add_contact
) -> None:
    charts = DashboardChartsService(db, cache=cache, clock=clock)
    activity = ActivityTrackingService(db, cache=cache, clock=clock)
    add_contact(countries=["France"])
    _place(db, {"France": (46.2, 2.2)})
    assert charts.get_geographic_distribution()[0].contactCount == 1

    contact = add_contact(countries=["France"])
    assert charts.get_geographic_distribution()[0].contactCount == 1
    assert cache.get(CacheKeys.geographic()) is not None

    activity.log_activity("create", "media_contact", contact.id, contact.name, "admin")
    assert charts.get_geographic_distribution()[0].contactCount == 2


def test_geographic_distribution_storage_failure(charts_service, db) -> None:
    db.execute(text("DROP TABLE countries"))
    db.commit()
    with pytest.raises(ChartQueryError):
        charts_service.get_geographic_distribution()
