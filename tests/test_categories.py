from workisready.services.category_service import (
    category_filter,
    expand_main_category,
    find_main_category,
    load_categories,
)

MAPPING = {
    "cleaning": {"name": "Cleaning", "subcategories": ["House Cleaning", "house cleaning", "Laundry"]},
}


def test_mapping_file_loads():
    mapping = load_categories()
    assert "plumbing" in mapping
    assert all("name" in entry and "subcategories" in entry for entry in mapping.values())


def test_lookup_by_id_or_name():
    assert find_main_category("plumbing")["name"] == "Plumbing"
    assert find_main_category("PLUMBING")["name"] == "Plumbing"
    assert find_main_category("Underwater Welding") is None


def test_expansion_starts_with_main_name():
    labels = expand_main_category("plumbing")
    assert labels[0] == "Plumbing"
    assert "Pipe Repair" in labels


def test_expansion_drops_case_duplicates():
    assert expand_main_category("Cleaning", MAPPING) == ["Cleaning", "House Cleaning", "Laundry"]


def test_id_alias_kept_in_expansion():
    mapping = {"hvac": {"name": "Air Conditioning", "subcategories": ["AC Repair"]}}
    assert expand_main_category("hvac", mapping) == ["Air Conditioning", "hvac", "AC Repair"]


def test_unknown_and_blank_values():
    assert expand_main_category("Drone Photography", MAPPING) == ["Drone Photography"]
    assert expand_main_category("   ", MAPPING) == []


def test_filter_is_anchored():
    patterns = category_filter("Cleaning", MAPPING)["$in"]
    assert any(pattern.match("laundry") for pattern in patterns)
    assert not any(pattern.match("Laundry Delivery") for pattern in patterns)
