import asyncio

import pytest

from coachshare.analysis.types import DayEntry
from coachshare.services.errors import (
    ClientRequestError,
    MissingResponseDataError,
    ServerError,
)

REGIMENS = [
    {
        "_id": "r1",
        "name": "Base Block",
        "assignedTo": ["a1"],
        "days": [
            {"date": "2024-07-04", "name": "Tempo", "intensity": "medium"},
            {"date": "2024-07-02", "name": "Easy run", "intensity": "easy"},
        ],
    }
]


def regimen_list(regimens=REGIMENS):
    return {"status": "success", "data": {"regimens": regimens}}


@pytest.mark.asyncio
async def test_concurrent_list_reads_share_one_call(api, backend):
    backend.add("GET", "/regimens/coach", (200, regimen_list()))

    first, second = await asyncio.gather(
        api.regimens.list_coach_regimens(), api.regimens.list_coach_regimens()
    )

    assert first == second == REGIMENS
    assert backend.count("GET", "/regimens/coach") == 1


@pytest.mark.asyncio
async def test_malformed_list_envelope_returns_empty(api, backend):
    backend.add("GET", "/regimens/coach", (200, {"status": "success", "data": {}}))

    assert await api.regimens.list_coach_regimens() == []


@pytest.mark.asyncio
async def test_list_errors_propagate(api, backend):
    backend.add("GET", "/regimens/coach", (503, {}))

    with pytest.raises(ServerError):
        await api.regimens.list_coach_regimens()


@pytest.mark.asyncio
async def test_athlete_regimens(api, backend):
    backend.add("GET", "/regimens/athlete", (200, regimen_list()))

    assert await api.regimens.list_athlete_regimens() == REGIMENS


@pytest.mark.asyncio
async def test_get_regimen_fills_id(api, backend):
    backend.add(
        "GET",
        "/regimens/r1",
        (200, {"status": "success", "data": {"regimen": REGIMENS[0]}}),
    )

    regimen = await api.regimens.get_regimen("r1")

    assert regimen["id"] == "r1"
    assert regimen["name"] == "Base Block"


@pytest.mark.asyncio
async def test_get_regimen_rejects_bad_envelope(api, backend):
    backend.add("GET", "/regimens/r1", (200, {"status": "success", "data": {}}))

    with pytest.raises(MissingResponseDataError):
        await api.regimens.get_regimen("r1")


@pytest.mark.asyncio
async def test_update_invalidates_regimen_reads(api, backend):
    backend.add("GET", "/regimens/coach", (200, regimen_list()))
    backend.add(
        "PATCH", "/regimens/r1", (200, {"status": "success", "data": REGIMENS[0]})
    )

    await api.regimens.list_coach_regimens()
    await api.regimens.update_regimen("r1", {"name": "Base Block 2"})
    await api.regimens.list_coach_regimens()

    assert backend.count("GET", "/regimens/coach") == 2


@pytest.mark.asyncio
async def test_create_invalidates_regimen_reads(api, backend):
    backend.add("GET", "/regimens/coach", (200, regimen_list()))
    backend.add("POST", "/regimens", (201, {"status": "success", "data": {}}))

    await api.regimens.list_coach_regimens()
    await api.regimens.create_regimen({"name": "Peak"})
    await api.regimens.list_coach_regimens()

    assert backend.count("GET", "/regimens/coach") == 2


@pytest.mark.asyncio
async def test_failed_create_keeps_cache(api, backend):
    backend.add("GET", "/regimens/coach", (200, regimen_list()))
    backend.add("POST", "/regimens", (400, {"message": "Name is required"}))

    await api.regimens.list_coach_regimens()
    with pytest.raises(ClientRequestError):
        await api.regimens.create_regimen({})
    await api.regimens.list_coach_regimens()

    assert backend.count("GET", "/regimens/coach") == 1


@pytest.mark.asyncio
async def test_delete_survives_log_cleanup_failure(api, backend):
    backend.add("DELETE", "/workout-logs/regimen/r1", (500, {}))
    backend.add("DELETE", "/regimens/r1", (200, {"status": "success"}))

    result = await api.regimens.delete_regimen("r1")

    assert result == {"status": "success"}
    assert backend.count("DELETE", "/regimens/r1") == 1


@pytest.mark.asyncio
async def test_delete_of_missing_regimen_counts_as_deleted(api, backend):
    backend.add("DELETE", "/workout-logs/regimen/r1", (200, {}))
    backend.add("DELETE", "/regimens/r1", (404, {"message": "Not found"}))

    result = await api.regimens.delete_regimen("r1")

    assert result == {"success": True, "message": "Regimen already deleted"}


@pytest.mark.asyncio
async def test_delete_invalidates_stats(api, backend):
    backend.add(
        "GET", "/workout-logs/coach/stats", (200, {"status": "success", "data": {}})
    )
    backend.add("DELETE", "/workout-logs/regimen/r1", (200, {}))
    backend.add("DELETE", "/regimens/r1", (200, {"status": "success"}))

    await api.workout_logs.stats()
    await api.regimens.delete_regimen("r1")
    await api.workout_logs.stats()

    assert backend.count("GET", "/workout-logs/coach/stats") == 2


@pytest.mark.asyncio
async def test_delete_forbidden_propagates(api, backend):
    backend.add("DELETE", "/workout-logs/regimen/r1", (200, {}))
    backend.add("DELETE", "/regimens/r1", (403, {"message": "Not your regimen"}))

    with pytest.raises(ClientRequestError):
        await api.regimens.delete_regimen("r1")


@pytest.mark.asyncio
async def test_schedule_days(api, backend):
    backend.add("GET", "/regimens/coach", (200, regimen_list()))

    days = await api.regimens.schedule_days()

    assert all(isinstance(d, DayEntry) for d in days)
    assert [d.name for d in days] == ["Easy run", "Tempo"]
    assert {d.regimen_name for d in days} == {"Base Block"}


@pytest.mark.asyncio
async def test_callers_cannot_mutate_cached_results(api, backend):
    backend.add("GET", "/regimens/coach", (200, regimen_list()))

    first = await api.regimens.list_coach_regimens()
    first.clear()
    second = await api.regimens.list_coach_regimens()

    assert second == REGIMENS
    assert backend.count("GET", "/regimens/coach") == 1
