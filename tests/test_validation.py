"""
Tests for the structural validator.
"""

import os
import sys

# Ensure the project root is on the path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from lvl_to_gltf.document import GltfDocument
from lvl_to_gltf.gltf_writer import merge_buffers
from lvl_to_gltf.mesh_builder import MeshBuilder
from lvl_to_gltf.scene_translator import translate_level
from lvl_to_gltf.source_graph import Material, Model, Segment
from lvl_to_gltf.validation import (ValidationSeverity, failed, validate_document,
                                    validate_gltf)

from level_fixtures import run_tests, terrain_and_rock_container


def _failed_ids(results, severity=ValidationSeverity.ERROR):
    return sorted(set(r.check_id for r in failed(results, severity)))


def _single_segment_document(**segment):
    fields = dict(vertices=[(0, 0, 0), (1, 0, 0), (0, 1, 0)],
                  normals=[(0, 0, 1)] * 3, uvs=[], indices=[0, 1, 2],
                  material=Material((255, 255, 255, 255)))
    fields.update(segment)
    doc = GltfDocument()
    mesh = MeshBuilder(doc).build_model_mesh(Model("tri", [Segment(**fields)]))
    scene = doc.add_scene("geo1")
    doc.add_node(scene, "tri", mesh=mesh)
    return doc


def test_converted_document_is_valid():
    results = validate_document(translate_level(terrain_and_rock_container()))
    assert _failed_ids(results) == []
    assert _failed_ids(results, ValidationSeverity.WARNING) == []
    ids = set(r.check_id for r in results)
    assert {'VIEW-001', 'VIEW-002', 'BUF-001', 'BUF-002', 'ACC-001',
            'ACC-002', 'MESH-001', 'MESH-004', 'NODE-001'} <= ids


def test_merged_buffers_are_valid():
    """Merged GLB buffers carry padding, so tight packing is not checked."""
    gltf, blob = merge_buffers(translate_level(terrain_and_rock_container()))
    results = validate_gltf(gltf, [blob])
    assert _failed_ids(results) == []
    assert 'BUF-002' not in set(r.check_id for r in results)


def test_index_out_of_range():
    doc = _single_segment_document(indices=[0, 1, 5])
    assert _failed_ids(validate_document(doc)) == ['MESH-004']


def test_attribute_count_mismatch_is_a_warning():
    doc = _single_segment_document(normals=[(0, 0, 1)] * 2)
    results = validate_document(doc)
    assert _failed_ids(results) == []
    assert _failed_ids(results, ValidationSeverity.WARNING) == ['MESH-003']


def test_accessor_count_too_large():
    doc = _single_segment_document()
    doc.gltf.accessors[0].count = 4
    assert 'ACC-001' in _failed_ids(validate_document(doc))


def test_view_past_buffer_end():
    doc = _single_segment_document()
    doc.gltf.bufferViews[-1].byteLength += 2
    ids = _failed_ids(validate_document(doc))
    assert 'VIEW-001' in ids
    assert 'BUF-002' in ids


def test_overlapping_views():
    doc = _single_segment_document()
    doc.gltf.bufferViews[1].byteOffset -= 4
    assert 'VIEW-002' in _failed_ids(validate_document(doc))


def test_truncated_buffer_data():
    doc = _single_segment_document()
    doc.buffer_data[0] = doc.buffer_data[0][:-2]
    assert 'BUF-001' in _failed_ids(validate_document(doc))


def test_dangling_references():
    doc = _single_segment_document()
    doc.gltf.nodes[0].mesh = 7
    doc.gltf.scenes[0].nodes.append(3)
    doc.gltf.meshes[0].primitives[0].material = 9
    ids = _failed_ids(validate_document(doc))
    assert 'NODE-001' in ids
    assert 'MESH-002' in ids


def test_mesh_without_primitives():
    doc = _single_segment_document()
    doc.add_mesh("empty", [])
    assert _failed_ids(validate_document(doc)) == ['MESH-001']


def test_failed_check_has_no_pass_line():
    doc = _single_segment_document(indices=[0, 1, 5])
    mesh_004 = [r for r in validate_document(doc) if r.check_id == 'MESH-004']
    assert len(mesh_004) == 1
    assert not mesh_004[0].passed
    assert "5" in mesh_004[0].message


def main():
    return run_tests("Validation tests", [
        ("converted_document_is_valid", test_converted_document_is_valid),
        ("merged_buffers_are_valid", test_merged_buffers_are_valid),
        ("index_out_of_range", test_index_out_of_range),
        ("attribute_count_mismatch_is_a_warning", test_attribute_count_mismatch_is_a_warning),
        ("accessor_count_too_large", test_accessor_count_too_large),
        ("view_past_buffer_end", test_view_past_buffer_end),
        ("overlapping_views", test_overlapping_views),
        ("truncated_buffer_data", test_truncated_buffer_data),
        ("dangling_references", test_dangling_references),
        ("mesh_without_primitives", test_mesh_without_primitives),
        ("failed_check_has_no_pass_line", test_failed_check_has_no_pass_line),
    ])


if __name__ == '__main__':
    sys.exit(main())
