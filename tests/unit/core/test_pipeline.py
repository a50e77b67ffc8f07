from __future__ import annotations

import io
import zipfile

import pytest

from csv_replace.core.models import FileDescriptor, ProcessRequest
from csv_replace.core.pipeline import SearchPipeline
from csv_replace.core.tabular import parse_csv
from tests.utils import PEOPLE_CSV, event_names, events_named, last_event, run_engine

pytestmark = pytest.mark.asyncio


def _pipeline(request: ProcessRequest, acquirer, storage) -> SearchPipeline:
    return SearchPipeline(request, source=acquirer, store=storage)


async def test_simple_search_only(put_csv, acquirer, storage) -> None:
    descriptor = await put_csv("people.csv", PEOPLE_CSV)
    request = ProcessRequest.model_validate(
        {"files": [descriptor.serializable_dict()], "searchTerm": "NY"}
    )

    events = await run_engine(_pipeline(request, acquirer, storage))

    assert event_names(events) == [
        "file-start",
        "file-info",
        "row-processed",
        "row-processed",
        "stats",
        "file-complete",
        "stats",
        "complete",
    ]
    assert events[0].data == {"filename": "people.csv", "path": "/data/people.csv"}
    assert events[1].data == {"filename": "people.csv", "totalRows": 3, "fieldsToSearch": 3}

    rows = events_named(events, "row-processed")
    assert [row["rowIndex"] for row in rows] == [1, 2]
    assert [m["field"] for m in rows[1]["matches"]] == ["city", "state"]
    assert all(m["oldValue"] == m["newValue"] for row in rows for m in row["matches"])

    assert events[4].data["currentFile"] == "people.csv"
    assert "currentFile" not in events[6].data

    complete = last_event(events, "complete")
    assert complete["outputFiles"] == [{"originalPath": "/data/people.csv", "newPath": None}]
    assert complete["downloadUrl"] is None
    assert complete["isZip"] is False
    assert complete["stats"]["totalMatches"] == 2
    assert complete["stats"]["totalReplacements"] == 0
    assert complete["stats"]["processedFiles"] == 1


async def test_advanced_replace_target_field(put_csv, acquirer, storage) -> None:
    descriptor = await put_csv("people.csv", PEOPLE_CSV)
    request = ProcessRequest(
        files=[descriptor],
        advanced={"conditions": [{"field": "state", "value": "NY", "mode": "equals"}]},
        replace_target_field="state",
        replace_value="New York",
    )

    events = await run_engine(_pipeline(request, acquirer, storage))

    complete = last_event(events, "complete")
    assert complete["stats"]["totalMatches"] == 2
    assert complete["stats"]["totalReplacements"] == 2
    assert complete["isZip"] is False

    new_path = complete["outputFiles"][0]["newPath"]
    assert new_path is not None and new_path.endswith("_people_replaced.csv")
    assert complete["downloadUrl"] == new_path

    table = parse_csv(await storage.read(new_path))
    assert [row["state"] for row in table.rows] == ["New York", "New York", "TX"]


async def test_advanced_replace_counts_only_differing_values(put_csv, acquirer, storage) -> None:
    descriptor = await put_csv("people.csv", "name,state\nA,NY\nB,New York\nC,ny\n")
    request = ProcessRequest(
        files=[descriptor],
        advanced={"conditions": [{"field": "state", "value": "n", "mode": "startsWith"}]},
        replace_target_field="state",
        replace_value="New York",
    )

    events = await run_engine(_pipeline(request, acquirer, storage))

    assert last_event(events, "complete")["stats"]["totalMatches"] == 3
    assert last_event(events, "complete")["stats"]["totalReplacements"] == 2
    assert [row["rowIndex"] for row in events_named(events, "row-processed")] == [1, 3]


async def test_advanced_search_only_reports_matched_fields(put_csv, acquirer, storage) -> None:
    descriptor = await put_csv("people.csv", PEOPLE_CSV)
    request = ProcessRequest(
        files=[descriptor],
        advanced={
            "logic": "OR",
            "conditions": [
                {"field": "city", "value": "austin", "mode": "equals"},
                {"field": "missing", "value": "x"},
            ],
        },
    )

    events = await run_engine(_pipeline(request, acquirer, storage))

    rows = events_named(events, "row-processed")
    assert [(row["rowIndex"], row["matches"][0]["field"]) for row in rows] == [(3, "city")]
    assert last_event(events, "complete")["outputFiles"][0]["newPath"] is None


async def test_advanced_without_active_conditions_matches_every_row(
    put_csv, acquirer, storage
) -> None:
    descriptor = await put_csv("people.csv", PEOPLE_CSV)
    request = ProcessRequest(
        files=[descriptor],
        advanced={"conditions": [{"field": "state", "value": ""}]},
    )

    events = await run_engine(_pipeline(request, acquirer, storage))

    assert last_event(events, "complete")["stats"]["totalMatches"] == 3
    assert events_named(events, "row-processed") == []


async def test_two_outputs_are_bundled_into_a_zip(put_csv, acquirer, storage) -> None:
    first = await put_csv("a.csv", PEOPLE_CSV, path="/in/a.csv")
    second = await put_csv("b.csv", PEOPLE_CSV, path="/in/b.csv")
    request = ProcessRequest(files=[first, second], search_term="NY", replace_term="NEW")

    events = await run_engine(_pipeline(request, acquirer, storage))

    complete = last_event(events, "complete")
    assert complete["isZip"] is True
    assert "processed_" in complete["downloadUrl"]
    assert complete["downloadUrl"].endswith(".zip")

    archive = zipfile.ZipFile(io.BytesIO(await storage.read(complete["downloadUrl"])))
    names = archive.namelist()
    assert len(names) == 2
    assert all(name.endswith("_replaced.csv") for name in names)


async def test_simple_replace_respects_selected_fields(put_csv, acquirer, storage) -> None:
    descriptor = await put_csv("people.csv", PEOPLE_CSV)
    request = ProcessRequest(
        files=[descriptor],
        search_term="TX",
        replace_term="Texas",
        selected_fields=["state", "not-there"],
    )

    events = await run_engine(_pipeline(request, acquirer, storage))

    rows = events_named(events, "row-processed")
    assert rows == [
        {
            "filename": "people.csv",
            "filePath": "/data/people.csv",
            "rowIndex": 3,
            "totalRows": 3,
            "matches": [{"field": "state", "oldValue": "TX", "newValue": "Texas"}],
        }
    ]
    assert last_event(events, "file-complete") == {
        "filename": "people.csv",
        "matchesCount": 1,
        "replacementsCount": 1,
        "newPath": last_event(events, "complete")["outputFiles"][0]["newPath"],
    }


@pytest.mark.parametrize("show_only_matches", [True, False])
async def test_show_only_matches_controls_retained_rows(
    put_csv, acquirer, storage, show_only_matches
) -> None:
    descriptor = await put_csv("people.csv", PEOPLE_CSV)
    request = ProcessRequest(
        files=[descriptor],
        search_term="ny",
        replace_term="ny",
        selected_fields=["state"],
        show_only_matches=show_only_matches,
    )

    events = await run_engine(_pipeline(request, acquirer, storage))

    new_path = last_event(events, "complete")["outputFiles"][0]["newPath"]
    table = parse_csv(await storage.read(new_path))
    assert table.columns == ["name", "city", "state"]
    if show_only_matches:
        assert [row["name"] for row in table.rows] == ["Alice", "Bob"]
    else:
        assert [row["name"] for row in table.rows] == ["Alice", "Bob", "Carol"]


async def test_stats_flush_every_ten_rows(put_csv, acquirer, storage) -> None:
    body = "id,value\n" + "".join(f"{i},v{i}\n" for i in range(25))
    descriptor = await put_csv("big.csv", body)
    request = ProcessRequest(files=[descriptor], search_term="v")

    events = await run_engine(_pipeline(request, acquirer, storage))

    names = event_names(events)
    stats_positions = [i for i, name in enumerate(names) if name == "stats"]
    assert len(stats_positions) == 4
    processed = [events[i].data["processedRows"] for i in stats_positions]
    assert processed == [10, 20, 25, 25]


async def test_missing_files_is_a_request_error(acquirer, storage) -> None:
    events = await run_engine(_pipeline(ProcessRequest(search_term="x"), acquirer, storage))

    assert event_names(events) == ["error"]
    assert events[0].data == {"error": "Files are required"}


async def test_simple_mode_requires_a_search_term(put_csv, acquirer, storage) -> None:
    descriptor = await put_csv("people.csv", PEOPLE_CSV)

    events = await run_engine(_pipeline(ProcessRequest(files=[descriptor]), acquirer, storage))

    assert event_names(events) == ["error"]
    assert "Search term is required" in events[0].data["error"]


async def test_invalid_regex_fails_before_any_file(put_csv, acquirer, storage) -> None:
    descriptor = await put_csv("people.csv", PEOPLE_CSV)
    request = ProcessRequest(files=[descriptor], search_term="(", use_regex=True)

    events = await run_engine(_pipeline(request, acquirer, storage))

    assert event_names(events) == ["error"]
    assert "filename" not in events[0].data


async def test_per_file_failures_do_not_stop_the_batch(put_csv, acquirer, storage) -> None:
    good = await put_csv("people.csv", PEOPLE_CSV)
    broken = await put_csv("broken.csv", "a,b\n1,2,3\n")
    missing = FileDescriptor(path="/data/gone.csv", name="gone.csv")
    request = ProcessRequest(files=[missing, broken, good], search_term="NY")

    events = await run_engine(_pipeline(request, acquirer, storage))

    errors = events_named(events, "error")
    assert [error["filename"] for error in errors] == ["gone.csv", "broken.csv"]
    assert errors[0]["error"] == "File must have a url"
    assert errors[1]["error"].startswith("CSV parsing errors")

    stats = last_event(events, "complete")["stats"]
    assert stats["totalFiles"] == 3
    assert stats["processedFiles"] == 1
    assert stats["totalRows"] == 3
    assert last_event(events, "complete")["outputFiles"] == [
        {"originalPath": "/data/people.csv", "newPath": None}
    ]


async def test_replace_operations_skip_fields_missing_from_a_file(
    put_csv, acquirer, storage
) -> None:
    people = await put_csv("people.csv", PEOPLE_CSV)
    codes = await put_csv("codes.csv", "name,state\nDan,NY\nEve,CA\n")
    request = ProcessRequest.model_validate(
        {
            "files": [people.serializable_dict(), codes.serializable_dict()],
            "advanced": {"conditions": [{"field": "state", "value": "NY", "mode": "equals"}]},
            "replaceOperations": [
                {"field": "state", "value": "New York"},
                {"field": "city", "value": "NYC"},
            ],
        }
    )

    events = await run_engine(_pipeline(request, acquirer, storage))

    assert events_named(events, "error") == []
    completed = events_named(events, "file-complete")
    assert [(c["filename"], c["matchesCount"], c["replacementsCount"]) for c in completed] == [
        ("people.csv", 2, 4),
        ("codes.csv", 1, 1),
    ]

    people_rows = parse_csv(await storage.read(completed[0]["newPath"])).rows
    assert [(row["city"], row["state"]) for row in people_rows] == [
        ("NYC", "New York"),
        ("NYC", "New York"),
        ("Austin", "TX"),
    ]
    codes_table = parse_csv(await storage.read(completed[1]["newPath"]))
    assert codes_table.columns == ["name", "state"]
    assert [row["state"] for row in codes_table.rows] == ["New York", "CA"]

    complete = last_event(events, "complete")
    assert complete["stats"]["totalReplacements"] == 5
    assert complete["isZip"] is True


@pytest.mark.parametrize(
    "operations",
    [[{"field": "state"}], [{"field": "", "value": "x"}]],
)
async def test_incomplete_replace_operations_keep_search_only(
    put_csv, acquirer, storage, operations
) -> None:
    descriptor = await put_csv("people.csv", PEOPLE_CSV)
    request = ProcessRequest.model_validate(
        {
            "files": [descriptor.serializable_dict()],
            "advanced": {"conditions": [{"field": "state", "value": "NY", "mode": "equals"}]},
            "replaceOperations": operations,
        }
    )

    events = await run_engine(_pipeline(request, acquirer, storage))

    complete = last_event(events, "complete")
    assert complete["outputFiles"] == [{"originalPath": "/data/people.csv", "newPath": None}]
    assert complete["downloadUrl"] is None
    assert complete["stats"]["totalMatches"] == 2
    assert complete["stats"]["totalReplacements"] == 0
    assert sorted(path.name for path in storage.base_dir.iterdir()) == [
        storage.name_from_locator(descriptor.location)
    ]
