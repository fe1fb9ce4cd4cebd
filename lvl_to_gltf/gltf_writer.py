"""
Serializes a GltfDocument to .glb or .gltf and reads accessors back.

The document keeps one buffer per geometry unit. GLB allows a single
binary chunk, so write_glb concatenates the buffers (each padded to a
4-byte boundary) and rebases the buffer views onto that one buffer. The
text format embeds every buffer as a base64 data URI instead.

Both writers work on a copy of the document's glTF, so the document can
be written several times in either format.
"""

import base64
import copy
import logging
import os
import struct

import pygltflib

log = logging.getLogger(__name__)


DATA_URI_PREFIX = "data:application/octet-stream;base64,"

# struct format character per component type.
_COMPONENT_FORMATS = {
    pygltflib.BYTE: 'b',
    pygltflib.UNSIGNED_BYTE: 'B',
    pygltflib.SHORT: 'h',
    pygltflib.UNSIGNED_SHORT: 'H',
    pygltflib.UNSIGNED_INT: 'I',
    pygltflib.FLOAT: 'f',
}

# Number of components per element type.
_TYPE_COMPONENTS = {
    pygltflib.SCALAR: 1,
    pygltflib.VEC2: 2,
    pygltflib.VEC3: 3,
    pygltflib.VEC4: 4,
    pygltflib.MAT2: 4,
    pygltflib.MAT3: 9,
    pygltflib.MAT4: 16,
}


def _ensure_parent(path):
    parent = os.path.dirname(path)
    if parent and not os.path.exists(parent):
        os.makedirs(parent)


def merge_buffers(document):
    """
    Build a single-buffer copy of the document's glTF.

    Returns:
        tuple: (gltf, blob) where gltf is a pygltflib.GLTF2 whose views
            all point at buffer 0 and blob is the concatenated bytes.
    """
    gltf = copy.deepcopy(document.gltf)
    blob = bytearray()
    bases = []
    for data in document.buffer_data:
        bases.append(len(blob))
        blob.extend(data)
        # Pad to 4-byte alignment
        while len(blob) % 4 != 0:
            blob.append(0)

    for view in gltf.bufferViews:
        view.byteOffset = bases[view.buffer] + (view.byteOffset or 0)
        view.buffer = 0

    gltf.buffers = [pygltflib.Buffer(byteLength=len(blob))] if blob else []
    return gltf, bytes(blob)


def write_glb(document, output_path):
    """
    Write *document* as a glTF 2.0 binary (.glb) file.

    Returns:
        int: Size of the binary chunk in bytes.
    """
    gltf, blob = merge_buffers(document)
    if blob:
        gltf.set_binary_blob(blob)
    _ensure_parent(output_path)
    gltf.save_binary(output_path)
    log.info("Wrote glTF binary: %s (%d bytes)", output_path, len(blob))
    return len(blob)


def write_gltf(document, output_path):
    """
    Write *document* as a glTF 2.0 text (.gltf) file with embedded buffers.

    Returns:
        int: Total buffer size in bytes.
    """
    gltf = copy.deepcopy(document.gltf)
    for buffer, data in zip(gltf.buffers, document.buffer_data):
        buffer.uri = DATA_URI_PREFIX + base64.b64encode(data).decode('ascii')
    _ensure_parent(output_path)
    gltf.save_json(output_path)
    total = sum(len(data) for data in document.buffer_data)
    log.info("Wrote glTF: %s (%d buffer bytes)", output_path, total)
    return total


def write_document(document, output_path, binary=True):
    """Write *document* as .glb (binary=True) or .gltf."""
    if binary:
        return write_glb(document, output_path)
    return write_gltf(document, output_path)


def default_output_path(input_path, binary=True):
    """Replace the input file's extension with .glb or .gltf."""
    return os.path.splitext(input_path)[0] + ('.glb' if binary else '.gltf')


# ---------------------------------------------------------------------------
# Reading back
# ---------------------------------------------------------------------------

def load_gltf(path):
    """
    Load a .glb or .gltf file.

    Returns:
        tuple: (gltf, buffers) where buffers is a list of bytes, one per
            gltf.buffers entry.
    """
    gltf = pygltflib.GLTF2.load(path)
    buffers = []
    for index, buffer in enumerate(gltf.buffers):
        if buffer.uri is None and index == 0:
            buffers.append(gltf.binary_blob() or b'')
        elif buffer.uri and buffer.uri.startswith("data:"):
            buffers.append(base64.b64decode(buffer.uri.split(',', 1)[1]))
        else:
            with open(os.path.join(os.path.dirname(path), buffer.uri), 'rb') as f:
                buffers.append(f.read())
    return gltf, buffers


def accessor_component_size(accessor):
    """Bytes per component of *accessor* (e.g. 4 for FLOAT)."""
    return struct.calcsize('<' + _COMPONENT_FORMATS[accessor.componentType])


def accessor_element_size(accessor):
    """Bytes per element of *accessor* (component size x components)."""
    return accessor_component_size(accessor) * _TYPE_COMPONENTS[accessor.type]


def read_accessor(gltf, buffers, accessor_index):
    """
    Read an accessor back as a list of values.

    SCALAR accessors yield plain numbers, everything else tuples.

    Args:
        gltf: pygltflib.GLTF2 holding the accessor.
        buffers: List of bytes per buffer (e.g. document.buffer_data or
            the second value returned by load_gltf).
        accessor_index: Index into gltf.accessors.
    """
    if accessor_index is None:
        return []
    acc = gltf.accessors[accessor_index]
    view = gltf.bufferViews[acc.bufferView]
    data = buffers[view.buffer]

    components = _TYPE_COMPONENTS[acc.type]
    fmt = '<' + _COMPONENT_FORMATS[acc.componentType] * components
    size = struct.calcsize(fmt)
    stride = view.byteStride or size
    offset = (view.byteOffset or 0) + (acc.byteOffset or 0)

    result = []
    for i in range(acc.count):
        vals = struct.unpack_from(fmt, data, offset + i * stride)
        result.append(vals[0] if components == 1 else vals)
    return result
