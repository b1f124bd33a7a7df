"""
workisready/services/aggregation.py

Purpose: Region and category grouping for discovery pages

- Open tasks grouped onto the canonical region list
- Approved providers grouped by region (count, rating, top skills)
- Per-category provider counts inside one region

All functions are pure: they take raw documents and return response data.
"""

from collections import Counter, OrderedDict
from typing import Any, Dict, Iterable, List

from utils.constants import EXCLUDED_MAIN_CATEGORIES, GHANA_REGIONS, UNSPECIFIED_REGION
from utils.validation_utils import canonical_region

SAMPLE_PROVIDERS_PER_CATEGORY = 3
TOP_REGION_CATEGORIES = 20
TOP_SKILLS_PER_REGION = 3


def _region_slug(name: str) -> str:
    return "-".join(name.lower().split())


def _categories_of(document: Dict[str, Any]) -> List[str]:
    value = document.get("category")
    if isinstance(value, str):
        value = value.split(",")
    if not value:
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def group_tasks_by_region(tasks: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Groups open tasks by canonical region with per-category counts.

    Tasks whose main category is a homepage pseudo category are excluded.
    Tasks with no recognizable region land in "Unspecified Region", which
    is listed first and only when non-empty. Canonical regions keep their
    alphabetical order whether or not they have jobs.
    """
    buckets: "OrderedDict[str, Dict[str, Any]]" = OrderedDict(
        (name, {"totalJobs": 0, "categories": Counter()})
        for name in [UNSPECIFIED_REGION, *GHANA_REGIONS]
    )
    total_open = 0
    excluded = 0
    with_region = 0

    for task in tasks:
        total_open += 1
        if (task.get("region") or "").strip():
            with_region += 1
        if task.get("main_category") in EXCLUDED_MAIN_CATEGORIES:
            excluded += 1
            continue

        target = canonical_region(task.get("region")) or UNSPECIFIED_REGION
        bucket = buckets[target]
        bucket["totalJobs"] += 1
        bucket["categories"].update(_categories_of(task))

    regions = []
    unspecified = buckets.pop(UNSPECIFIED_REGION)
    if unspecified["totalJobs"] > 0:
        regions.append({
            "_id": "unspecified",
            "name": UNSPECIFIED_REGION,
            "totalJobs": unspecified["totalJobs"],
            "categories": dict(unspecified["categories"]),
            "hasJobs": True,
            "isUnspecified": True,
        })
    for name, bucket in buckets.items():
        regions.append({
            "_id": name,
            "name": name,
            "totalJobs": bucket["totalJobs"],
            "categories": dict(bucket["categories"]),
            "hasJobs": bucket["totalJobs"] > 0,
            "isUnspecified": False,
        })

    return {
        "regions": regions,
        "totalJobs": sum(region["totalJobs"] for region in regions),
        "totalOpenJobs": total_open,
        "excludedJobs": excluded,
        "jobsWithRegions": with_region,
        "jobsWithoutRegions": total_open - with_region,
    }


def group_providers_by_region(providers: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Groups approved providers onto the canonical region list.

    Each region reports provider count, average rating (one decimal, over
    all providers in the region), its top skills (lowercased) and the total
    number of skill mentions. Regions without providers are omitted and
    providers with unknown regions are ignored.
    """
    stats = {name: {"count": 0, "rating": 0.0, "skills": Counter()} for name in GHANA_REGIONS}

    for provider in providers:
        region = canonical_region(provider.get("region"))
        if region is None:
            continue
        entry = stats[region]
        entry["count"] += 1
        rating = provider.get("average_rating")
        if isinstance(rating, (int, float)):
            entry["rating"] += rating
        for skill in provider.get("skills") or []:
            if isinstance(skill, str) and skill.strip():
                entry["skills"][skill.strip().lower()] += 1

    regions = []
    for name in GHANA_REGIONS:
        entry = stats[name]
        if entry["count"] == 0:
            continue
        average = round(entry["rating"] / entry["count"], 1) if entry["rating"] > 0 else 0
        regions.append({
            "_id": _region_slug(name),
            "name": name,
            "providerCount": entry["count"],
            "skills": dict(entry["skills"].most_common(TOP_SKILLS_PER_REGION)),
            "totalSkills": sum(entry["skills"].values()),
            "averageRating": average,
            "hasProviders": True,
        })

    return {
        "regions": regions,
        "totalProviders": sum(region["providerCount"] for region in regions),
        "totalSkills": sum(region["totalSkills"] for region in regions),
        "regionsWithProviders": len(regions),
    }


def _provider_sample(provider: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": str(provider.get("_id")),
        "fullName": provider.get("full_name", ""),
        "profilePic": provider.get("profile_pic", ""),
        "averageRating": provider.get("average_rating", 0),
        "experience": provider.get("experience", ""),
    }


def count_categories(
    providers: Iterable[Dict[str, Any]],
    sample_size: int = SAMPLE_PROVIDERS_PER_CATEGORY,
) -> List[Dict[str, Any]]:
    """
    Unwinds each provider's categories and counts providers per category,
    most common first, with up to ``sample_size`` sample providers each.
    """
    counts: Counter = Counter()
    samples: Dict[str, List[Dict[str, Any]]] = {}

    for provider in providers:
        for category in _categories_of(provider):
            counts[category] += 1
            bucket = samples.setdefault(category, [])
            if len(bucket) < sample_size:
                bucket.append(_provider_sample(provider))

    return [
        {"category": category, "providerCount": count, "sampleProviders": samples[category]}
        for category, count in counts.most_common()
    ]


def top_categories(
    providers: Iterable[Dict[str, Any]],
    limit: int = TOP_REGION_CATEGORIES,
) -> List[Dict[str, Any]]:
    """Category names and provider counts, most common first."""
    counts: Counter = Counter()
    for provider in providers:
        counts.update(_categories_of(provider))
    return [{"name": name, "count": count} for name, count in counts.most_common(limit)]


def count_task_categories(tasks: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Job counts per category label, most common first."""
    counts: Counter = Counter()
    for task in tasks:
        counts.update(set(_categories_of(task)))
    return dict(counts.most_common())
