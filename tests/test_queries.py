import re

import pytest

from workisready.core.exceptions import ValidationError
from workisready.services.provider_service import (
    build_admin_query,
    build_provider_query,
    build_provider_search,
)
from workisready.services.task_service import build_search_query, build_task_query, resolve_location


def _regex(condition):
    return re.compile(condition["$regex"], re.IGNORECASE)


# ============================================================
# TASKS
# ============================================================

def test_region_suffix_and_case_do_not_change_task_filter():
    assert build_task_query(region="Ashanti") == build_task_query(region="ashanti region")


def test_region_filter_matches_stored_variants():
    pattern = _regex(build_task_query(region="Greater Accra")["region"])
    assert pattern.match("Greater Accra")
    assert pattern.match("greater accra region")
    assert not pattern.match("Greater Accra East")


def test_status_defaults_to_open():
    assert build_task_query() == {"status": "open"}


def test_status_all_disables_filter():
    assert "status" not in build_task_query(status="all")


def test_unknown_status_rejected():
    with pytest.raises(ValidationError):
        build_task_query(status="archived")


def test_category_filters():
    query = build_task_query(main_category=" Plumbing ", category="Pipe Repair", city="Kumasi")
    assert query["main_category"] == "Plumbing"
    assert query["category"] == {"$in": ["Pipe Repair"]}
    assert _regex(query["city"]).match("KUMASI")


def test_search_escapes_user_input():
    query = build_search_query("c++ (urgent)")
    pattern = query["$or"][0]["title"]["$regex"]
    assert re.search(pattern, "Need c++ (urgent) help")
    assert [list(clause)[0] for clause in query["$or"]] == ["title", "description", "category", "location"]


@pytest.mark.parametrize(
    "location, city, region, expected",
    [
        ("Adum, Kumasi", "Kumasi", "Ashanti", "Adum, Kumasi"),
        ("", "Kumasi", "Ashanti", "Kumasi, Ashanti"),
        (None, "Kumasi", None, ""),
        ("   ", None, None, ""),
    ],
)
def test_resolve_location(location, city, region, expected):
    assert resolve_location(location, city, region) == expected


# ============================================================
# PROVIDERS
# ============================================================

def test_region_suffix_and_case_do_not_change_provider_filter():
    assert build_provider_query(region="Ashanti") == build_provider_query(region="ashanti region")


def test_main_category_matches_any_subcategory_ignoring_case():
    condition = build_provider_query(main_category="Plumbing")["category"]["$in"]
    assert any(pattern.match("pipe repair") for pattern in condition)
    assert any(pattern.match("PLUMBING") for pattern in condition)
    assert not any(pattern.match("House Wiring") for pattern in condition)


def test_main_category_and_category_combined():
    query = build_provider_query(main_category="Plumbing", category="Pipe Repair")
    assert "category" not in query
    assert len(query["$and"]) == 2


def test_public_queries_only_list_approved():
    assert build_provider_query()["is_approved"] is True
    assert "is_approved" not in build_provider_query(approved_only=False)
    assert build_provider_search("kofi")["is_approved"] is True


def test_min_rating_filter():
    assert build_provider_query(min_rating=4)["average_rating"] == {"$gte": 4}


def test_admin_query():
    query = build_admin_query(search="ama", status="pending", category="all")
    assert query["is_approved"] is False
    assert "category" not in query
    assert len(query["$or"]) == 7
    assert build_admin_query(status="approved") == {"is_approved": True}
