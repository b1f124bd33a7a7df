from bson import ObjectId

from utils.constants import GHANA_REGIONS, UNSPECIFIED_REGION
from workisready.services.aggregation import (
    count_categories,
    count_task_categories,
    group_providers_by_region,
    group_tasks_by_region,
    top_categories,
)


def _task(region, categories, main_category=""):
    return {"region": region, "category": categories, "main_category": main_category or categories[0]}


def test_tasks_grouped_onto_canonical_regions():
    tasks = [
        _task("Ashanti", ["Plumbing"]),
        _task("ashanti region", ["Plumbing", "Pipe Repair"]),
        _task("", ["Cleaning"]),
        _task("Atlantis", ["Cleaning"]),
        _task("Volta", ["Plumbing"], main_category="Popular Jobs"),
    ]
    result = group_tasks_by_region(tasks)

    unspecified = result["regions"][0]
    assert unspecified["name"] == UNSPECIFIED_REGION
    assert unspecified["isUnspecified"] is True
    assert unspecified["totalJobs"] == 2
    assert unspecified["categories"] == {"Cleaning": 2}

    ashanti = next(region for region in result["regions"] if region["name"] == "Ashanti")
    assert ashanti["totalJobs"] == 2
    assert ashanti["categories"] == {"Plumbing": 2, "Pipe Repair": 1}
    assert ashanti["hasJobs"] is True

    volta = next(region for region in result["regions"] if region["name"] == "Volta")
    assert volta["totalJobs"] == 0
    assert volta["hasJobs"] is False

    assert len(result["regions"]) == len(GHANA_REGIONS) + 1
    assert result["totalJobs"] == 4
    assert result["totalOpenJobs"] == 5
    assert result["excludedJobs"] == 1
    assert result["jobsWithRegions"] == 4
    assert result["jobsWithoutRegions"] == 1


def test_unspecified_region_omitted_when_empty():
    result = group_tasks_by_region([_task("Central", ["Masonry"])])
    names = [region["name"] for region in result["regions"]]
    assert names == GHANA_REGIONS


def test_providers_grouped_by_region():
    providers = [
        {"region": "Ashanti", "average_rating": 4, "skills": ["Welding", "Painting"]},
        {"region": "ashanti region", "average_rating": 5, "skills": ["welding", "Tiling", "Roofing"]},
        {"region": "Greater Accra", "average_rating": 0, "skills": []},
        {"region": "Mars", "average_rating": 5, "skills": ["Flying"]},
    ]
    result = group_providers_by_region(providers)

    assert [region["name"] for region in result["regions"]] == ["Ashanti", "Greater Accra"]
    ashanti, accra = result["regions"]
    assert ashanti["providerCount"] == 2
    assert ashanti["averageRating"] == 4.5
    assert ashanti["skills"]["welding"] == 2
    assert len(ashanti["skills"]) == 3
    assert ashanti["totalSkills"] == 5
    assert accra["_id"] == "greater-accra"
    assert accra["averageRating"] == 0
    assert result["totalProviders"] == 3
    assert result["regionsWithProviders"] == 2


def test_category_counts_with_samples():
    providers = [
        {"_id": ObjectId(), "full_name": f"Provider {i}", "category": ["Plumbing"] + (["Tiling"] if i < 2 else [])}
        for i in range(5)
    ]
    stats = count_categories(providers, sample_size=3)

    assert [entry["category"] for entry in stats] == ["Plumbing", "Tiling"]
    assert stats[0]["providerCount"] == 5
    assert len(stats[0]["sampleProviders"]) == 3
    assert stats[1]["providerCount"] == 2
    assert stats[0]["sampleProviders"][0]["fullName"] == "Provider 0"


def test_comma_separated_categories_are_split():
    assert top_categories([{"category": "Plumbing, Tiling"}, {"category": ["Plumbing"]}]) == [
        {"name": "Plumbing", "count": 2},
        {"name": "Tiling", "count": 1},
    ]


def test_task_category_counts_once_per_task():
    tasks = [{"category": ["Cleaning", "Cleaning"]}, {"category": ["Cleaning", "Laundry"]}]
    assert count_task_categories(tasks) == {"Cleaning": 2, "Laundry": 1}
