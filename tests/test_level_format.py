"""
Tests for the JSON level description format.
"""

import json
import os
import shutil
import sys
import tempfile

# Ensure the project root is on the path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from lvl_to_gltf.errors import LevelFormatError
from lvl_to_gltf.level_format import (FORMAT_VERSION, level_from_dict,
                                      level_to_dict, load_container, load_level,
                                      save_json, validate_level)
from lvl_to_gltf.source_graph import Level, Topology

from level_fixtures import (capture_logs, rock_model, run_tests,
                            terrain_and_rock_container)


def _geo1_dict():
    return level_to_dict(terrain_and_rock_container().levels[0])


def _minimal_dict(**fields):
    data = {
        "format_version": FORMAT_VERSION,
        "type": "level",
        "name": "geo1",
        "worlds": [],
        "models": [],
    }
    data.update(fields)
    return data


def test_valid_level_has_no_errors():
    assert validate_level(_geo1_dict()) == []
    assert validate_level(_minimal_dict()) == []


def test_missing_fields():
    errors = validate_level({"type": "level"})
    assert "Missing required field: format_version" in errors
    assert "Missing required field: worlds" in errors
    assert validate_level([]) == ["level description must be a JSON object"]


def test_wrong_type_and_version():
    errors = validate_level(_minimal_dict(type="mesh", format_version="2.1.0"))
    assert len(errors) == 2
    assert "type must be 'level'" in errors[0]
    assert "2.1.0" in errors[1]
    assert validate_level(_minimal_dict(format_version="1.4.2")) == []


def test_malformed_vectors():
    data = _minimal_dict(
        worlds=[{"name": "geo1", "instances": [
            {"name": "rock_a", "position": [1.0, 2.0]},
        ]}],
        models=[{"name": "rock01", "segments": [
            {"vertices": [[0, 0, 0]], "uvs": [[0, 0, 0]]},
            {"normals": []},
        ]}],
    )
    errors = validate_level(data)
    assert any("instances[0].position" in e for e in errors)
    assert any("segments[0].uvs" in e for e in errors)
    assert any("segments[1] missing key 'vertices'" in e for e in errors)


def test_level_from_dict():
    level = level_from_dict(_geo1_dict())
    assert level.name == "geo1"
    assert [w.name for w in level.worlds] == ["geo1"]
    world = level.worlds[0]
    assert world.terrain.name == "geo1_terrain"
    assert world.terrain.indices == (0, 1, 2, 0, 2, 3)
    assert world.instances[0].position == (10.0, 0.0, 5.0)
    assert world.instances[0].get_property("GeometryName") == "rock01"

    segment = level.find_model("rock01").segments[0]
    assert segment.topology is Topology.TRIANGLE_LIST
    assert segment.material.diffuse_color == (255, 0, 0, 255)


def test_defaults_for_optional_fields():
    level = level_from_dict(_minimal_dict(
        worlds=[{"name": "geo1", "instances": [{"name": "marker"}]}],
        models=[{"name": "rock01", "segments": [
            {"vertices": [[0, 0, 0], [1, 0, 0], [0, 1, 0]], "topology": "triangle_fan"},
        ]}],
    ))
    instance = level.worlds[0].instances[0]
    assert instance.position == (0.0, 0.0, 0.0)
    assert instance.rotation == (0.0, 0.0, 0.0, 1.0)
    assert instance.properties == {}
    assert level.worlds[0].terrain is None

    segment = level.find_model("rock01").segments[0]
    assert segment.topology is Topology.TRIANGLE_FAN
    assert segment.normals == ()
    assert segment.indices == ()
    assert segment.material.diffuse_color == (255, 255, 255, 255)


def test_unknown_topology_is_kept():
    level = level_from_dict(_minimal_dict(models=[{"name": "odd", "segments": [
        {"vertices": [[0, 0, 0]], "topology": 42},
    ]}]))
    assert level.find_model("odd").segments[0].topology == 42
    assert level_to_dict(level)["models"][0]["segments"][0]["topology"] == 42


def test_arrays_are_copied_when_built():
    vertices = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
    indices = [0, 1, 2]
    level = level_from_dict(_minimal_dict(models=[{"name": "tri", "segments": [
        {"vertices": vertices, "indices": indices},
    ]}]))
    vertices[0][0] = 9.0
    indices.append(3)

    segment = level.find_model("tri").segments[0]
    assert segment.vertices[0] == (0.0, 0.0, 0.0)
    assert segment.indices == (0, 1, 2)


def test_invalid_dict_raises():
    try:
        level_from_dict(_minimal_dict(worlds="geo1"))
    except LevelFormatError as e:
        assert "worlds must be a list" in str(e)
    else:
        raise AssertionError("Expected LevelFormatError")


def test_dict_round_trip():
    data = _geo1_dict()
    assert level_to_dict(level_from_dict(data)) == data


def test_load_level_and_container():
    tmp = tempfile.mkdtemp(prefix="lvl_to_gltf_")
    try:
        world_path = os.path.join(tmp, "geo1.json")
        common_path = os.path.join(tmp, "ingame.json")
        save_json(world_path, _geo1_dict())
        save_json(common_path, level_to_dict(
            Level("ingame", models=[rock_model("com_bldg_controlzone")])))

        level = load_level(world_path)
        assert level.name == "geo1"

        container = load_container(world_path, common_path)
        assert [lvl.name for lvl in container.levels] == ["geo1", "ingame"]
        assert container.world_level().name == "geo1"
        assert container.find_model("com_bldg_controlzone") is not None
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


def test_missing_common_level_is_ignored():
    tmp = tempfile.mkdtemp(prefix="lvl_to_gltf_")
    try:
        world_path = os.path.join(tmp, "geo1.json")
        save_json(world_path, _geo1_dict())
        with capture_logs('lvl_to_gltf.level_format') as logs:
            container = load_container(world_path, os.path.join(tmp, "nope.json"))
        assert len(container.levels) == 1
        assert any("nope.json" in m for m in logs.messages())
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


def test_load_invalid_json():
    tmp = tempfile.mkdtemp(prefix="lvl_to_gltf_")
    try:
        path = os.path.join(tmp, "broken.json")
        with open(path, 'w') as f:
            f.write("{not json")
        try:
            load_level(path)
        except LevelFormatError as e:
            assert "not valid JSON" in str(e)
        else:
            raise AssertionError("Expected LevelFormatError")

        with open(path, 'w') as f:
            json.dump({"type": "level"}, f)
        try:
            load_level(path)
        except LevelFormatError:
            pass
        else:
            raise AssertionError("Expected LevelFormatError")
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


def main():
    return run_tests("Level format tests", [
        ("valid_level_has_no_errors", test_valid_level_has_no_errors),
        ("missing_fields", test_missing_fields),
        ("wrong_type_and_version", test_wrong_type_and_version),
        ("malformed_vectors", test_malformed_vectors),
        ("level_from_dict", test_level_from_dict),
        ("defaults_for_optional_fields", test_defaults_for_optional_fields),
        ("unknown_topology_is_kept", test_unknown_topology_is_kept),
        ("arrays_are_copied_when_built", test_arrays_are_copied_when_built),
        ("invalid_dict_raises", test_invalid_dict_raises),
        ("dict_round_trip", test_dict_round_trip),
        ("load_level_and_container", test_load_level_and_container),
        ("missing_common_level_is_ignored", test_missing_common_level_is_ignored),
        ("load_invalid_json", test_load_invalid_json),
    ])


if __name__ == '__main__':
    sys.exit(main())
