"""Dashboard state persistence."""

import json
import uuid

from agent_deck.instances.state import InstancePane, LayoutMode, PaneCollection
from agent_deck.persistence import AppState, load_state, save_state


def test_missing_file_loads_nothing(tmp_path):
    assert load_state(tmp_path / "state.json") is None


def test_save_then_load(tmp_path):
    collection = PaneCollection(LayoutMode.HORIZONTAL_SPLIT)
    task_id = uuid.uuid4()
    plain = InstancePane(working_directory=tmp_path, name="shell", rows=20, columns=70)
    task = InstancePane(working_directory=tmp_path, name="agent", task_id=task_id, provider="amp")
    collection.add(plain)
    collection.add(task)

    target = save_state(AppState.from_collection(collection), tmp_path / "state.json")
    state = load_state(target)

    assert state.layout == LayoutMode.HORIZONTAL_SPLIT
    assert state.selected_index == 1
    assert [record.id for record in state.panes] == [plain.id, task.id]
    assert state.panes[0].rows == 20 and state.panes[0].columns == 70
    assert state.panes[0].task_id is None
    assert state.panes[1].task_id == task_id
    assert state.panes[1].provider == "amp"
    assert state.panes[1].working_directory == tmp_path


def test_no_process_data_is_stored(tmp_path):
    collection = PaneCollection()
    pane = InstancePane(working_directory=tmp_path)
    pane.append_output(b"secret output")
    collection.add(pane)
    target = save_state(AppState.from_collection(collection), tmp_path / "state.json")
    text = target.read_text(encoding="utf-8")
    assert "secret output" not in text
    assert set(json.loads(text)["panes"][0]) == {
        "id",
        "task_id",
        "name",
        "working_directory",
        "rows",
        "columns",
        "provider",
    }


def test_corrupt_file_is_ignored(tmp_path):
    target = tmp_path / "state.json"
    target.write_text("{not json", encoding="utf-8")
    assert load_state(target) is None


def test_invalid_records_are_skipped(tmp_path):
    target = tmp_path / "state.json"
    good_id = uuid.uuid4()
    target.write_text(
        json.dumps(
            {
                "layout": "nonsense",
                "selected_index": 9,
                "panes": [
                    {"id": "bad"},
                    {
                        "id": str(good_id),
                        "working_directory": str(tmp_path),
                        "rows": 10,
                        "columns": 20,
                    },
                ],
            }
        ),
        encoding="utf-8",
    )
    state = load_state(target)
    assert [record.id for record in state.panes] == [good_id]
    assert state.layout == LayoutMode.GRID
    assert state.selected_index == 0
