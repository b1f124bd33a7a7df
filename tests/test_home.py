import asyncio
from datetime import timedelta

import pytest
from bson import ObjectId

from utils.constants import MAX_HOME_SECTION_ITEMS
from utils.time_utils import utcnow
from workisready.core.exceptions import ResourceNotFoundError, ValidationError
from workisready.services.home_service import (
    FEATURED_PROVIDERS_SECTION,
    POPULAR_CITIES_SECTION,
    POPULAR_JOBS_SECTION,
    URGENT_WORK_SECTION,
    HomeService,
)
from support import FakeCollection


def _task(**overrides):
    task = {
        "_id": ObjectId(),
        "title": "Fix leaking tap",
        "category": ["Plumbing"],
        "description": "Kitchen tap drips all night",
        "location": "Adum, Kumasi",
        "due_date": utcnow() + timedelta(days=3),
        "contact": {"phone": "0241234567"},
        "client_id": ObjectId(),
        "status": "open",
    }
    task.update(overrides)
    return task


def _provider(**overrides):
    provider = {
        "_id": ObjectId(),
        "user_id": ObjectId(),
        "first_name": "Kwame",
        "surname": "Darko",
        "city": "Accra",
        "region": "Greater Accra",
        "district": "Accra Metropolitan",
        "phone": "0501234567",
        "email": "kwame@example.com",
        "category": ["Carpentry"],
        "bio": "Furniture maker and carpenter, custom cabinets, doors and roofing frames.",
        "is_approved": True,
        "created_at": utcnow(),
    }
    provider.update(overrides)
    return provider


def _service(tasks=(), providers=(), users=(), **sections):
    collections = {
        name: FakeCollection(sections.get(name.replace("-", "_"), []))
        for name in (FEATURED_PROVIDERS_SECTION, URGENT_WORK_SECTION, POPULAR_JOBS_SECTION, POPULAR_CITIES_SECTION)
    }
    return HomeService(collections, FakeCollection(list(tasks)), FakeCollection(list(providers)), FakeCollection(list(users)))


def test_unknown_section_rejected():
    with pytest.raises(ValidationError):
        asyncio.run(_service().list_entries("hot-deals"))


def test_urgent_entry_gets_default_expiry():
    task = _task()
    service = _service(tasks=[task])

    entry = asyncio.run(service.add_entry(URGENT_WORK_SECTION, {"task_id": str(task["_id"])}))

    assert entry["taskId"] == str(task["_id"])
    assert entry["order"] == 0
    assert entry["expiresAt"] > utcnow() + timedelta(days=6)


def test_duplicate_entry_rejected():
    task = _task()
    service = _service(tasks=[task])
    asyncio.run(service.add_entry(POPULAR_JOBS_SECTION, {"task_id": str(task["_id"])}))

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(service.add_entry(POPULAR_JOBS_SECTION, {"task_id": str(task["_id"])}))
    assert excinfo.value.message == "This entry is already in popular jobs"


def test_section_capacity():
    entries = [{"_id": ObjectId(), "name": f"City {i}", "is_active": True, "order": i} for i in range(MAX_HOME_SECTION_ITEMS)]
    service = _service(popular_cities=entries)

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(service.add_entry(POPULAR_CITIES_SECTION, {"name": "Ho"}))
    assert excinfo.value.message == f"Maximum {MAX_HOME_SECTION_ITEMS} popular cities allowed"


def test_entry_for_missing_task():
    service = _service()
    with pytest.raises(ResourceNotFoundError):
        asyncio.run(service.add_entry(URGENT_WORK_SECTION, {"task_id": str(ObjectId())}))


def test_missing_target():
    with pytest.raises(ValidationError):
        asyncio.run(_service().add_entry(POPULAR_CITIES_SECTION, {"name": "  "}))


def test_featured_flag_follows_entries():
    provider = _provider()
    service = _service(providers=[provider])

    entry = asyncio.run(service.add_entry(FEATURED_PROVIDERS_SECTION, {"provider_id": str(provider["_id"])}))
    assert service.providers.documents[0]["is_featured"] is True

    asyncio.run(service.remove_entry(FEATURED_PROVIDERS_SECTION, entry["_id"]))
    assert service.providers.documents[0]["is_featured"] is False
    with pytest.raises(ResourceNotFoundError):
        asyncio.run(service.remove_entry(FEATURED_PROVIDERS_SECTION, entry["_id"]))


def test_featured_providers_topped_up_from_flag():
    curated = _provider(first_name="Curated")
    flagged = _provider(first_name="Flagged", is_featured=True)
    entry = {
        "_id": ObjectId(),
        "provider_id": curated["_id"],
        "is_active": True,
        "order": 0,
        "expires_at": utcnow() + timedelta(days=1),
    }
    service = _service(providers=[curated, flagged], featured_providers=[entry])

    providers = asyncio.run(service.featured_providers())

    assert [provider["firstName"] for provider in providers] == ["Curated", "Flagged"]
    assert providers[0]["featuredOrder"] == 0


def test_expired_urgent_work_hidden():
    task = _task()
    entries = [
        {"_id": ObjectId(), "task_id": task["_id"], "is_active": True, "expires_at": utcnow() - timedelta(hours=1)},
    ]
    service = _service(tasks=[task], urgent_work=entries)
    assert asyncio.run(service.urgent_work()) == []


def test_popular_jobs_skip_deleted_tasks():
    task = _task()
    entries = [
        {"_id": ObjectId(), "task_id": ObjectId(), "is_active": True, "order": 0},
        {"_id": ObjectId(), "task_id": task["_id"], "is_active": True, "order": 1},
    ]
    service = _service(tasks=[task], popular_jobs=entries)

    jobs = asyncio.run(service.popular_jobs())

    assert len(jobs) == 1
    assert jobs[0]["task"]["title"] == "Fix leaking tap"


def test_popular_cities_manual_and_auto():
    tasks = [
        _task(location="Adum, Kumasi", category=["Plumbing"]),
        _task(location="kumasi", category=["Plumbing", "Tiling"]),
        _task(location="Kumasi", status="completed"),
        _task(location="Accra"),
    ]
    entries = [
        {"_id": ObjectId(), "name": "Kumasi", "is_active": True, "order": 0, "is_auto_calculated": True},
        {
            "_id": ObjectId(),
            "name": "Tamale",
            "is_active": True,
            "order": 1,
            "manual_job_count": 12,
            "manual_categories": {"Farming": 7},
        },
    ]
    service = _service(tasks=tasks, popular_cities=entries)

    kumasi, tamale = asyncio.run(service.popular_cities())

    assert kumasi["totalJobs"] == 2
    assert kumasi["categories"] == {"Plumbing": 2, "Tiling": 1}
    assert kumasi["isAutoCalculated"] is True
    assert tamale["totalJobs"] == 12
    assert tamale["categories"] == {"Farming": 7}
    assert tamale["isAutoCalculated"] is False


def test_update_order():
    entries = [{"_id": ObjectId(), "name": name, "is_active": True, "order": i} for i, name in enumerate(["Ho", "Wa", "Cape Coast"])]
    service = _service(popular_cities=entries)

    touched = asyncio.run(service.update_order(POPULAR_CITIES_SECTION, [str(entries[2]["_id"]), str(entries[0]["_id"]), "junk"]))

    assert touched == 2
    listed = asyncio.run(service.list_entries(POPULAR_CITIES_SECTION))
    assert [entry["name"] for entry in listed] == ["Cape Coast", "Ho", "Wa"]


def test_stats():
    service = _service(
        tasks=[_task(), _task(status="completed")],
        providers=[_provider(), _provider(is_approved=False)],
        users=[{"user_type": "client"}, {"user_type": "worker"}],
    )
    assert asyncio.run(service.stats()) == {
        "totalTasks": 1,
        "totalProviders": 1,
        "totalClients": 1,
        "completedJobs": 1,
    }


def test_search_tasks_for_curation():
    listed = _task(title="Fix leaking tap", created_at=utcnow() - timedelta(days=1))
    fresh = _task(title="Replace kitchen tap", created_at=utcnow())
    closed = _task(title="Tap installation", status="completed")
    other = _task(title="Paint fence", category=["Painting"], description="Two coats")
    entries = [{"_id": ObjectId(), "task_id": listed["_id"], "is_active": True, "order": 0}]
    service = _service(tasks=[listed, fresh, closed, other], urgent_work=entries)

    results = asyncio.run(service.search_tasks("tap", URGENT_WORK_SECTION))

    assert [result["title"] for result in results] == ["Replace kitchen tap", "Fix leaking tap"]
    assert [result["alreadyListed"] for result in results] == [False, True]
    assert asyncio.run(service.search_tasks("   ")) == []
    with pytest.raises(ValidationError):
        asyncio.run(service.search_tasks("tap", POPULAR_CITIES_SECTION))


def test_search_providers_by_name_or_category():
    carpenter = _provider(full_name="Kwame Darko", average_rating=4.0)
    plumber = _provider(full_name="Ama Mensah", category=["Plumbing"], average_rating=4.8, is_featured=True)
    service = _service(providers=[carpenter, plumber])

    by_name = asyncio.run(service.search_providers("darko"))
    by_category = asyncio.run(service.search_providers("plumb"))

    assert [result["name"] for result in by_name] == ["Kwame Darko"]
    assert by_name[0]["location"] == "Accra, Greater Accra"
    assert by_category == [{
        "_id": str(plumber["_id"]),
        "name": "Ama Mensah",
        "category": ["Plumbing"],
        "location": "Accra, Greater Accra",
        "rating": 4.8,
        "isApproved": True,
        "isFeatured": True,
    }]
