"""
Structural validator for converted glTF documents.

Validates:
- Buffer views lie inside their buffer and do not overlap
- Packed buffers are fully covered by their views (tight packing)
- Accessor count x element size matches the view it reads
- Index values address existing vertices
- Node, scene, mesh and material references are in range
- Every mesh has at least one primitive

Usage:
    from lvl_to_gltf.validation import validate_document, failed

    results = validate_document(document)
    for result in failed(results):
        print(result)
"""

import struct
from enum import Enum

from .gltf_writer import (accessor_component_size, accessor_element_size,
                          read_accessor)


class ValidationSeverity(Enum):
    """Severity level for a validation check."""
    ERROR = "ERROR"       # Output is corrupt or violates glTF
    WARNING = "WARNING"   # Loads, but likely renders wrong
    INFO = "INFO"         # Informational


class ValidationResult:
    """Single validation check result."""

    def __init__(self, check_id, severity, passed, message):
        """
        Args:
            check_id: Identifier of the check (e.g. 'VIEW-001').
            severity: ValidationSeverity enum value.
            passed: True if the check passed, False if it failed.
            message: Short human-readable description of the result.
        """
        self.check_id = check_id
        self.severity = severity
        self.passed = passed
        self.message = message

    def __repr__(self):
        status = "PASS" if self.passed else "FAIL"
        return "ValidationResult({}, {}, {}, {!r})".format(
            self.check_id, self.severity.value, status, self.message
        )


def failed(results, severity=ValidationSeverity.ERROR):
    """Return the failed results of the given severity."""
    return [r for r in results if not r.passed and r.severity == severity]


class _Collector:
    """Records failures per check and a PASS line for clean checks."""

    def __init__(self):
        self.results = []
        self._failed = set()

    def fail(self, check_id, message, severity=ValidationSeverity.ERROR):
        self._failed.add(check_id)
        self.results.append(ValidationResult(check_id, severity, False, message))

    def passed(self, check_id, message, severity=ValidationSeverity.ERROR):
        if check_id not in self._failed:
            self.results.append(ValidationResult(check_id, severity, True, message))


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def _check_buffer_views(gltf, buffers, tight, out):
    views_by_buffer = {}
    for index, view in enumerate(gltf.bufferViews):
        if view.buffer is None or not 0 <= view.buffer < len(gltf.buffers):
            out.fail('VIEW-001', "bufferView {} references missing buffer {}".format(
                index, view.buffer))
            continue
        start = view.byteOffset or 0
        end = start + view.byteLength
        size = gltf.buffers[view.buffer].byteLength
        if end > size:
            out.fail('VIEW-001', "bufferView {} ends at byte {} past buffer {} ({} bytes)".format(
                index, end, view.buffer, size))
        views_by_buffer.setdefault(view.buffer, []).append((start, end, index))
    out.passed('VIEW-001', "{} buffer views inside their buffers".format(
        len(gltf.bufferViews)))

    for buffer_index, ranges in sorted(views_by_buffer.items()):
        ranges.sort()
        for (a_start, a_end, a_idx), (b_start, b_end, b_idx) in zip(ranges, ranges[1:]):
            if b_start < a_end:
                out.fail('VIEW-002', "bufferViews {} and {} overlap in buffer {}".format(
                    a_idx, b_idx, buffer_index))
    out.passed('VIEW-002', "No overlapping buffer views")

    for buffer_index, buffer in enumerate(gltf.buffers):
        if buffer_index < len(buffers) and len(buffers[buffer_index]) < buffer.byteLength:
            out.fail('BUF-001', "buffer {} declares {} bytes but holds {}".format(
                buffer_index, buffer.byteLength, len(buffers[buffer_index])))
        if tight:
            covered = sum(end - start for start, end, _ in views_by_buffer.get(buffer_index, []))
            if covered != buffer.byteLength:
                out.fail('BUF-002', "buffer {} is {} bytes but its views cover {}".format(
                    buffer_index, buffer.byteLength, covered))
    out.passed('BUF-001', "{} buffers hold their declared bytes".format(len(gltf.buffers)))
    if tight:
        out.passed('BUF-002', "Buffers are tightly packed")


def _check_accessors(gltf, tight, out):
    for index, acc in enumerate(gltf.accessors):
        if acc.bufferView is None or not 0 <= acc.bufferView < len(gltf.bufferViews):
            out.fail('ACC-001', "accessor {} references missing bufferView {}".format(
                index, acc.bufferView))
            continue
        view = gltf.bufferViews[acc.bufferView]
        size = accessor_element_size(acc)
        stride = view.byteStride or size
        offset = acc.byteOffset or 0
        needed = offset + stride * (acc.count - 1) + size if acc.count else 0
        if needed > view.byteLength or (tight and acc.count * size != view.byteLength):
            out.fail('ACC-001', "accessor {} needs {} bytes, bufferView {} has {}".format(
                index, acc.count * size, acc.bufferView, view.byteLength))
        if ((view.byteOffset or 0) + offset) % accessor_component_size(acc) != 0:
            out.fail('ACC-002', "accessor {} data is not aligned to its component size".format(
                index))
    out.passed('ACC-001', "{} accessors match their buffer views".format(len(gltf.accessors)))
    out.passed('ACC-002', "Accessor offsets aligned")


def _check_meshes(gltf, buffers, out):
    for mesh_index, mesh in enumerate(gltf.meshes):
        if not mesh.primitives:
            out.fail('MESH-001', "mesh {} ({}) has no primitives".format(mesh_index, mesh.name))
        for prim_index, prim in enumerate(mesh.primitives):
            where = "mesh {} primitive {}".format(mesh_index, prim_index)
            attributes = {
                'POSITION': prim.attributes.POSITION,
                'NORMAL': prim.attributes.NORMAL,
                'TEXCOORD_0': prim.attributes.TEXCOORD_0,
            }
            counts = {}
            for semantic, acc_index in attributes.items():
                if acc_index is None:
                    continue
                if not 0 <= acc_index < len(gltf.accessors):
                    out.fail('MESH-002', "{} {} references missing accessor {}".format(
                        where, semantic, acc_index))
                    continue
                counts[semantic] = gltf.accessors[acc_index].count
            if attributes['POSITION'] is None:
                out.fail('MESH-002', "{} has no POSITION attribute".format(where))
            if len(set(counts.values())) > 1:
                out.fail('MESH-003', "{} attribute counts differ: {}".format(where, counts),
                         severity=ValidationSeverity.WARNING)
            if prim.material is not None and not 0 <= prim.material < len(gltf.materials):
                out.fail('MESH-002', "{} references missing material {}".format(
                    where, prim.material))

            if prim.indices is not None and 'POSITION' in counts:
                if not 0 <= prim.indices < len(gltf.accessors):
                    out.fail('MESH-002', "{} references missing index accessor {}".format(
                        where, prim.indices))
                    continue
                vertex_count = counts['POSITION']
                try:
                    indices = read_accessor(gltf, buffers, prim.indices)
                except (struct.error, IndexError) as e:
                    out.fail('MESH-004', "{} indices could not be read: {}".format(where, e))
                    continue
                if indices and max(indices) >= vertex_count:
                    out.fail('MESH-004', "{} index {} out of range for {} vertices".format(
                        where, max(indices), vertex_count))
    out.passed('MESH-001', "{} meshes have primitives".format(len(gltf.meshes)))
    out.passed('MESH-002', "Primitive references in range")
    out.passed('MESH-003', "Primitive attribute counts agree",
               severity=ValidationSeverity.WARNING)
    out.passed('MESH-004', "Index values address existing vertices")


def _check_nodes(gltf, out):
    for index, node in enumerate(gltf.nodes):
        if node.mesh is not None and not 0 <= node.mesh < len(gltf.meshes):
            out.fail('NODE-001', "node {} ({}) references missing mesh {}".format(
                index, node.name, node.mesh))
    for index, scene in enumerate(gltf.scenes):
        for node_index in scene.nodes:
            if not 0 <= node_index < len(gltf.nodes):
                out.fail('NODE-001', "scene {} ({}) references missing node {}".format(
                    index, scene.name, node_index))
    out.passed('NODE-001', "{} nodes, {} scenes reference valid entries".format(
        len(gltf.nodes), len(gltf.scenes)))


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def validate_gltf(gltf, buffers, tight=False):
    """
    Validate a pygltflib.GLTF2 and its buffer bytes.

    Args:
        gltf: pygltflib.GLTF2 to check.
        buffers: List of bytes, one per gltf.buffers entry.
        tight: Also require every buffer to be covered exactly by its
            views. Holds for freshly converted documents, not for merged
            GLB buffers which contain alignment padding.

    Returns:
        List of ValidationResult objects.
    """
    out = _Collector()
    _check_buffer_views(gltf, buffers, tight, out)
    _check_accessors(gltf, tight, out)
    _check_meshes(gltf, buffers, out)
    _check_nodes(gltf, out)
    return out.results


def validate_document(document):
    """Validate a freshly converted GltfDocument (tight packing expected)."""
    return validate_gltf(document.gltf, document.buffer_data, tight=True)
