import asyncio

import pytest
from bson import ObjectId
from pydantic import ValidationError as SchemaError

from utils.constants import DEFAULT_REJECTION_REASON, NO_CHANGES_MESSAGE
from workisready.core.exceptions import ResourceNotFoundError, UpdateApplyError, ValidationError
from workisready.services.media_service import MediaStorage
from workisready.services.provider_service import merge_sample_work
from workisready.services.update_request_service import UpdateRequestService, apply_changes, build_changes
from support import FakeCollection

BIO = "Licensed plumber with ten years of residential and commercial experience."


def _provider(**overrides):
    provider = {
        "_id": ObjectId(),
        "user_id": ObjectId(),
        "first_name": "Ama",
        "surname": "Mensah",
        "city": "Kumasi",
        "region": "Ashanti",
        "district": "Kumasi Metropolitan",
        "phone": "0241234567",
        "email": "ama@example.com",
        "category": ["Plumbing"],
        "skills": ["Pipe Repair"],
        "bio": BIO,
        "sample_work": [],
        "reviews": [],
        "average_rating": 0,
    }
    provider.update(overrides)
    return provider


def _request(provider, **overrides):
    request = {
        "_id": ObjectId(),
        "provider_id": provider["_id"],
        "user_id": provider["user_id"],
        "changes": {"experience": "5-10"},
        "new_sample_files": ["uploads/providers/new.png"],
        "status": "pending",
    }
    request.update(overrides)
    return request


# ============================================================
# PURE HELPERS
# ============================================================

def test_blank_fields_are_not_changes():
    changes = build_changes(category=[" ", ""], bio="  ", skills=[], experience="3-5", hourly_rate=None)
    assert changes.present() == {"experience": "3-5"}


def test_invalid_experience_rejected():
    with pytest.raises(SchemaError):
        build_changes(experience="forever")


def test_merge_appends_new_files():
    gallery, dropped = merge_sample_work(["a.png"], ["b.png"], limit=10)
    assert gallery == ["a.png", "b.png"]
    assert dropped == []


def test_merge_skips_files_already_in_gallery():
    gallery, dropped = merge_sample_work(["a.png", "b.png"], ["b.png"], limit=10)
    assert gallery == ["a.png", "b.png"]
    assert dropped == []


def test_gallery_keeps_newest_entries():
    current = [f"old-{i}.png" for i in range(9)]
    gallery, dropped = merge_sample_work(current, ["new-1.png", "new-2.png", "new-3.png"], limit=10)
    assert len(gallery) == 10
    assert gallery[-3:] == ["new-1.png", "new-2.png", "new-3.png"]
    assert dropped == ["old-0.png", "old-1.png"]


def test_apply_changes_only_touches_present_fields():
    provider = _provider(sample_work=["a.png"])
    updates, dropped = apply_changes(provider, {"bio": BIO + " Available weekends."}, [], limit=10)
    assert updates == {"bio": BIO + " Available weekends."}
    assert dropped == []


# ============================================================
# SERVICE
# ============================================================

def _service(provider, *requests, root):
    providers = FakeCollection([provider])
    stored = FakeCollection(list(requests))
    return UpdateRequestService(stored, providers, MediaStorage(root=str(root))), stored, providers


def test_approve_applies_changes_and_closes_request(tmp_path):
    provider = _provider(sample_work=["uploads/providers/old.png"])
    request = _request(provider)
    service, requests, providers = _service(provider, request, root=tmp_path)

    result = asyncio.run(service.approve(str(request["_id"]), str(ObjectId())))

    assert result["experience"] == "5-10"
    assert providers.documents[0]["experience_rank"] == 4
    assert result["sampleWork"] == ["uploads/providers/old.png", "uploads/providers/new.png"]
    assert requests.documents[0]["status"] == "approved"
    assert requests.documents[0]["processed_at"] is not None


def test_approving_twice_does_not_append_again(tmp_path):
    provider = _provider()
    request = _request(provider)
    service, requests, providers = _service(provider, request, root=tmp_path)

    asyncio.run(service.approve(str(request["_id"]), str(ObjectId())))
    with pytest.raises(ValidationError):
        asyncio.run(service.approve(str(request["_id"]), str(ObjectId())))

    assert providers.documents[0]["sample_work"] == ["uploads/providers/new.png"]


def test_approve_drops_oldest_files_beyond_limit(tmp_path):
    (tmp_path / "providers").mkdir()
    old = [f"uploads/providers/old-{i}.png" for i in range(10)]
    (tmp_path / "providers" / "old-0.png").write_bytes(b"x")
    provider = _provider(sample_work=old)
    request = _request(provider, changes={})
    service, requests, providers = _service(provider, request, root=tmp_path)

    asyncio.run(service.approve(str(request["_id"]), str(ObjectId())))

    gallery = providers.documents[0]["sample_work"]
    assert len(gallery) == 10
    assert gallery[0] == "uploads/providers/old-1.png"
    assert gallery[-1] == "uploads/providers/new.png"
    assert not (tmp_path / "providers" / "old-0.png").exists()


def test_failed_apply_is_server_error_and_leaves_request_pending(tmp_path):
    provider = _provider(bio="Too short")
    request = _request(provider)
    service, requests, providers = _service(provider, request, root=tmp_path)

    with pytest.raises(UpdateApplyError) as excinfo:
        asyncio.run(service.approve(str(request["_id"]), str(ObjectId())))

    assert excinfo.value.status_code == 500
    assert excinfo.value.details[0]["loc"] == ["bio"]
    assert requests.documents[0]["status"] == "pending"
    assert providers.documents[0].get("experience") is None
    assert providers.documents[0]["sample_work"] == []


def test_reject_leaves_provider_untouched(tmp_path):
    (tmp_path / "providers").mkdir()
    (tmp_path / "providers" / "new.png").write_bytes(b"x")
    provider = _provider()
    request = _request(provider)
    service, requests, providers = _service(provider, request, root=tmp_path)

    result = asyncio.run(service.reject(str(request["_id"]), str(ObjectId()), reason=" "))

    assert result["status"] == "rejected"
    assert result["rejectionReason"] == DEFAULT_REJECTION_REASON
    assert providers.documents[0].get("experience") is None
    assert not (tmp_path / "providers" / "new.png").exists()


def test_unknown_request_is_not_found(tmp_path):
    service, _, _ = _service(_provider(), root=tmp_path)
    with pytest.raises(ResourceNotFoundError):
        asyncio.run(service.approve(str(ObjectId()), str(ObjectId())))


def test_submit_requires_a_change(tmp_path):
    provider = _provider()
    service, requests, _ = _service(provider, root=tmp_path)

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(service.submit(str(provider["user_id"]), build_changes()))

    assert excinfo.value.message == NO_CHANGES_MESSAGE
    assert requests.documents == []


def test_submit_stores_pending_request(tmp_path):
    provider = _provider()
    service, requests, _ = _service(provider, root=tmp_path)

    request_id = asyncio.run(service.submit(str(provider["user_id"]), build_changes(bio=BIO + " Updated.")))

    stored = requests.documents[0]
    assert str(stored["_id"]) == request_id
    assert stored["status"] == "pending"
    assert stored["provider_id"] == provider["_id"]
    assert stored["changes"] == {"bio": BIO + " Updated."}


def test_submit_without_profile_is_not_found(tmp_path):
    service, _, _ = _service(_provider(), root=tmp_path)
    with pytest.raises(ResourceNotFoundError):
        asyncio.run(service.submit(str(ObjectId()), build_changes(bio=BIO)))
