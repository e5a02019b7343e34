"""
Tests for the scenario store — persistence, capacity, and defensive loading.

The persisted blob is treated as hostile: every test that feeds it garbage
expects a clean, partial, or empty result and never an exception.
"""

from __future__ import annotations

import json

import pytest

from roi_calculator.config import DEFAULT_STORAGE_KEY
from roi_calculator.exceptions import ConfirmationRequiredError, ScenarioNotFoundError
from roi_calculator.models import Inputs
from roi_calculator.store import (
    MAX_SCENARIOS,
    FileBackend,
    MemoryBackend,
    ScenarioStore,
    normalize_inputs,
    quick_metrics,
    validate_scenario,
)

GOOD_ENTRY = {
    "id": "abc",
    "name": "Launch day",
    "createdAt": 1_700_000_000_000,
    "inputs": {"todayGmv": "125000", "todaySpend": "32000", "todayRefundRate": ""},
}


def _store_with_blob(blob: str) -> ScenarioStore:
    return ScenarioStore(MemoryBackend({DEFAULT_STORAGE_KEY: blob}))


class _FailingBackend(MemoryBackend):
    def write(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")


class _UnreadableBackend(MemoryBackend):
    def read(self, key: str) -> str | None:
        raise OSError("permission denied")


# ═══════════════════════════════════════════════════════════════════════
# INPUT NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════


class TestNormalizeInputs:
    def test_complete_record_kept(self):
        inputs = normalize_inputs({"todayGmv": "1,000", "monthExpectedRefundRate": "15%"})
        assert inputs is not None
        assert inputs.today_gmv == "1,000"
        assert inputs.month_expected_refund_rate == "15%"

    def test_missing_fields_become_blank(self):
        inputs = normalize_inputs({})
        assert inputs == Inputs()

    def test_wrongly_typed_fields_become_blank(self):
        inputs = normalize_inputs({"todayGmv": 125000, "todaySpend": None, "todayRefundRate": "5%"})
        assert inputs is not None
        assert inputs.today_gmv == ""
        assert inputs.today_spend == ""
        assert inputs.today_refund_rate == "5%"

    def test_unknown_keys_ignored(self):
        inputs = normalize_inputs({"futureField": "x", "monthGmv": "9"})
        assert inputs is not None
        assert inputs.month_gmv == "9"

    @pytest.mark.parametrize("raw", [None, "text", 42, ["todayGmv"]])
    def test_non_mapping_rejected(self, raw):
        assert normalize_inputs(raw) is None


class TestValidateScenario:
    def test_well_formed(self):
        scenario = validate_scenario(GOOD_ENTRY)
        assert scenario is not None
        assert scenario.id == "abc"
        assert scenario.created_at == 1_700_000_000_000
        assert scenario.inputs.today_gmv == "125000"

    @pytest.mark.parametrize("missing", ["id", "name", "createdAt"])
    def test_missing_identity_field_rejected(self, missing):
        entry = {k: v for k, v in GOOD_ENTRY.items() if k != missing}
        assert validate_scenario(entry) is None

    def test_numeric_id_rejected(self):
        assert validate_scenario({**GOOD_ENTRY, "id": 7}) is None

    def test_string_timestamp_rejected(self):
        assert validate_scenario({**GOOD_ENTRY, "createdAt": "1700000000000"}) is None

    def test_boolean_timestamp_rejected(self):
        assert validate_scenario({**GOOD_ENTRY, "createdAt": True}) is None

    def test_float_timestamp_accepted(self):
        scenario = validate_scenario({**GOOD_ENTRY, "createdAt": 1.5e12})
        assert scenario is not None

    @pytest.mark.parametrize("created_at", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_timestamp_rejected(self, created_at):
        assert validate_scenario({**GOOD_ENTRY, "createdAt": created_at}) is None

    def test_missing_inputs_rejected(self):
        entry = {k: v for k, v in GOOD_ENTRY.items() if k != "inputs"}
        assert validate_scenario(entry) is None

    def test_non_object_rejected(self):
        assert validate_scenario("abc") is None
        assert validate_scenario(None) is None


# ═══════════════════════════════════════════════════════════════════════
# LOADING
# ═══════════════════════════════════════════════════════════════════════


class TestLoadAll:
    def test_nothing_persisted(self, store: ScenarioStore):
        assert store.load_all() == []

    @pytest.mark.parametrize("blob", ["not json", "{\"a\": 1}", "42", "null", ""])
    def test_corrupt_blob_loads_empty(self, blob):
        assert _store_with_blob(blob).load_all() == []

    def test_unreadable_backend_loads_empty(self):
        assert ScenarioStore(_UnreadableBackend()).load_all() == []

    def test_malformed_entry_dropped_good_one_kept(self):
        bad = {k: v for k, v in GOOD_ENTRY.items() if k != "createdAt"}
        store = _store_with_blob(json.dumps([GOOD_ENTRY, bad]))
        loaded = store.load_all()
        assert len(loaded) == 1
        assert loaded[0].id == "abc"

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_timestamp_entry_dropped(self, literal):
        bad = json.dumps({**GOOD_ENTRY, "id": "bad"}).replace("1700000000000", literal)
        store = _store_with_blob(f"[{bad}, {json.dumps(GOOD_ENTRY)}]")
        assert [s.id for s in store.load_all()] == ["abc"]

    def test_order_preserved(self):
        entries = [{**GOOD_ENTRY, "id": f"id{n}"} for n in range(5)]
        loaded = _store_with_blob(json.dumps(entries)).load_all()
        assert [s.id for s in loaded] == ["id0", "id1", "id2", "id3", "id4"]

    def test_truncated_to_capacity(self):
        entries = [{**GOOD_ENTRY, "id": f"id{n}"} for n in range(150)]
        loaded = _store_with_blob(json.dumps(entries)).load_all()
        assert len(loaded) == MAX_SCENARIOS
        assert loaded[-1].id == "id99"

    def test_load_populates_session_list(self):
        store = _store_with_blob(json.dumps([GOOD_ENTRY]))
        assert store.scenarios == []
        store.load()
        assert [s.id for s in store.scenarios] == ["abc"]


# ═══════════════════════════════════════════════════════════════════════
# SAVING
# ═══════════════════════════════════════════════════════════════════════


class TestSaving:
    def test_save_then_load_round_trips_raw_text(self, store: ScenarioStore):
        inputs = Inputs(today_gmv=" 125,000 ", today_refund_rate="10%", month_expected_refund_rate="")
        store.add("Launch day", inputs)
        reloaded = ScenarioStore(store.backend).load_all()
        assert reloaded[0].inputs == inputs
        assert reloaded[0].inputs.today_gmv == " 125,000 "

    def test_persisted_with_camel_case_keys(self, store: ScenarioStore, backend: MemoryBackend):
        store.add("x", Inputs(platform_refund_rate_1h="8"))
        entry = json.loads(backend.data[DEFAULT_STORAGE_KEY])[0]
        assert set(entry) == {"id", "name", "createdAt", "inputs"}
        assert entry["inputs"]["platformRefundRate1h"] == "8"

    def test_newest_first(self, store: ScenarioStore):
        store.add("first", Inputs())
        store.add("second", Inputs())
        assert [s.name for s in store.scenarios] == ["second", "first"]

    def test_blank_name_gets_default(self, store: ScenarioStore):
        store.add("one", Inputs())
        scenario = store.add("   ", Inputs())
        assert scenario.name == "Scenario 2"

    def test_ids_and_timestamps_from_collaborators(self, store: ScenarioStore):
        first = store.add("a", Inputs())
        second = store.add("b", Inputs())
        assert (first.id, second.id) == ("s1", "s2")
        assert second.created_at > first.created_at

    def test_hundred_and_first_save_drops_oldest(self, store: ScenarioStore, backend: MemoryBackend):
        for n in range(MAX_SCENARIOS + 1):
            store.add(f"#{n}", Inputs())
        persisted = json.loads(backend.data[DEFAULT_STORAGE_KEY])
        assert len(persisted) == MAX_SCENARIOS
        assert persisted[0]["name"] == "#100"
        assert persisted[-1]["name"] == "#1"
        assert len(store.scenarios) == MAX_SCENARIOS

    def test_save_all_never_writes_more_than_capacity(self, store: ScenarioStore, backend: MemoryBackend):
        scenario = store.add("x", Inputs())
        store.save_all([scenario] * 250)
        assert len(json.loads(backend.data[DEFAULT_STORAGE_KEY])) == MAX_SCENARIOS

    def test_write_failure_is_swallowed(self):
        store = ScenarioStore(_FailingBackend())
        scenario = store.add("kept in memory", Inputs())
        assert store.scenarios == [scenario]


class TestDeleteAndClear:
    def test_delete_by_id(self, store: ScenarioStore, backend: MemoryBackend):
        keep = store.add("keep", Inputs())
        drop = store.add("drop", Inputs())
        store.delete(drop.id)
        assert store.scenarios == [keep]
        assert [e["id"] for e in json.loads(backend.data[DEFAULT_STORAGE_KEY])] == [keep.id]

    def test_delete_unknown_id(self, store: ScenarioStore):
        with pytest.raises(ScenarioNotFoundError):
            store.delete("nope")

    def test_get_unknown_id(self, store: ScenarioStore):
        with pytest.raises(ScenarioNotFoundError) as exc:
            store.get("nope")
        assert exc.value.code == "SCENARIO_NOT_FOUND"

    def test_clear_requires_confirmation(self, store: ScenarioStore):
        store.add("a", Inputs())
        with pytest.raises(ConfirmationRequiredError):
            store.clear()
        assert len(store.scenarios) == 1

    def test_clear_confirmed(self, store: ScenarioStore, backend: MemoryBackend):
        store.add("a", Inputs())
        store.add("b", Inputs())
        assert store.clear(confirm=True) == 2
        assert store.scenarios == []
        assert json.loads(backend.data[DEFAULT_STORAGE_KEY]) == []


# ═══════════════════════════════════════════════════════════════════════
# FILE BACKEND
# ═══════════════════════════════════════════════════════════════════════


class TestFileBackend:
    def test_round_trip_through_disk(self, tmp_path):
        store = ScenarioStore(FileBackend(tmp_path / "nested"))
        store.add("on disk", Inputs(month_gmv="980000"))
        assert (tmp_path / "nested" / f"{DEFAULT_STORAGE_KEY}.json").exists()
        reloaded = ScenarioStore(FileBackend(tmp_path / "nested")).load()
        assert reloaded[0].inputs.month_gmv == "980000"

    def test_missing_file_reads_none(self, tmp_path):
        assert FileBackend(tmp_path).read("absent") is None

    def test_invalid_utf8_loads_empty(self, tmp_path):
        (tmp_path / f"{DEFAULT_STORAGE_KEY}.json").write_bytes(b"\xff\xfe\x00garbage")
        assert ScenarioStore(FileBackend(tmp_path)).load_all() == []


# ═══════════════════════════════════════════════════════════════════════
# QUICK METRICS
# ═══════════════════════════════════════════════════════════════════════


class TestQuickMetrics:
    def test_matches_full_composer_example(self):
        quick = quick_metrics(Inputs(today_gmv="125000", today_spend="32000"))
        assert quick.fee_rate.text == "25.60%"
        assert quick.net_return.text == "3.91"

    def test_uses_exact_trailing_hour_when_available(self):
        quick = quick_metrics(
            Inputs(
                today_gmv="125000",
                today_spend="32000",
                platform_refund_rate_1h="5%",
                one_hour_gmv="20000",
                one_hour_spend="4000",
            )
        )
        assert quick.net_return.text == "4.75"

    def test_invalid_daily_gmv_is_not_used(self):
        quick = quick_metrics(Inputs(today_gmv="-125000", today_spend="32000"))
        assert quick.fee_rate.text == "—"
        assert quick.net_return.text == "—"
        assert quick.net_return.note is not None

    def test_zero_spend(self):
        quick = quick_metrics(Inputs(today_gmv="1000", today_spend="0"))
        assert quick.fee_rate.text == "0.00%"
        assert quick.net_return.text == "∞"
