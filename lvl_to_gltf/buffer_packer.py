"""
Packs the attribute and index arrays of one geometry unit into a buffer.

Layout of a packed buffer (no padding anywhere):

    [positions  count * 12 bytes]  VEC3 float32
    [normals    count * 12 bytes]  VEC3 float32   (omitted when empty)
    [uvs        count *  8 bytes]  VEC2 float32   (omitted when empty)
    [indices    count *  2 bytes]  SCALAR uint16  (omitted when empty)

Each present array gets one buffer view covering exactly its byte range
and one accessor at offset 0 inside that view, so the returned accessor
indices can be put into a primitive directly.

Values are written little-endian whatever the host byte order is.
Every vertex sub-region is a multiple of 4 bytes long, which keeps the
index view aligned to its 2-byte component size.
"""

import logging
from collections import namedtuple

import numpy as np
import pygltflib

from .errors import ConversionError, IndexRangeError, MissingGeometryError

log = logging.getLogger(__name__)


# Largest value an UNSIGNED_SHORT index accessor can hold. Values run
# 0..65535, so up to 65536 distinct vertices are addressable.
MAX_INDEX_VALUE = 0xFFFF


_Layout = namedtuple('_Layout', [
    'semantic', 'components', 'dtype', 'component_type', 'element_type',
    'target',
])

POSITION_LAYOUT = _Layout('POSITION', 3, '<f4', pygltflib.FLOAT,
                          pygltflib.VEC3, pygltflib.ARRAY_BUFFER)
NORMAL_LAYOUT = _Layout('NORMAL', 3, '<f4', pygltflib.FLOAT,
                        pygltflib.VEC3, pygltflib.ARRAY_BUFFER)
UV_LAYOUT = _Layout('TEXCOORD_0', 2, '<f4', pygltflib.FLOAT,
                    pygltflib.VEC2, pygltflib.ARRAY_BUFFER)
INDEX_LAYOUT = _Layout('INDICES', 1, '<u2', pygltflib.UNSIGNED_SHORT,
                       pygltflib.SCALAR, pygltflib.ELEMENT_ARRAY_BUFFER)


def element_size(layout):
    """Size in bytes of one element (e.g. 12 for a float32 VEC3)."""
    return layout.components * np.dtype(layout.dtype).itemsize


class PackedGeometry:
    """
    Accessor indices produced for one packed geometry unit.

    Attributes:
        buffer: Index of the buffer holding the packed bytes.
        accessors: Dict semantic -> accessor index, for the arrays that
            were present ('POSITION', 'NORMAL', 'TEXCOORD_0', 'INDICES').
    """

    def __init__(self, buffer, accessors):
        self.buffer = buffer
        self.accessors = accessors

    @property
    def indices(self):
        return self.accessors.get('INDICES')

    def attributes(self):
        """Build primitive attributes; missing arrays are left unset."""
        return pygltflib.Attributes(
            POSITION=self.accessors.get('POSITION'),
            NORMAL=self.accessors.get('NORMAL'),
            TEXCOORD_0=self.accessors.get('TEXCOORD_0'),
        )


def _vertex_array(values, layout, name):
    """Convert a sequence of vectors into an (n, components) array."""
    array = np.asarray(values, dtype=layout.dtype)
    if array.ndim != 2 or array.shape[1] != layout.components:
        raise ConversionError(
            "{}: {} must be a sequence of {}-component vectors, got shape {}".format(
                name, layout.semantic, layout.components, array.shape))
    return array


def _index_array(values, name):
    """Convert indices to uint16, rejecting values that do not fit."""
    wide = np.asarray(values, dtype=np.int64).reshape(-1)
    low = int(wide.min())
    high = int(wide.max())
    if low < 0 or high > MAX_INDEX_VALUE:
        raise IndexRangeError(
            "{}: index values must be within 0..{}, got {}..{}".format(
                name, MAX_INDEX_VALUE, low, high))
    return wide.astype(INDEX_LAYOUT.dtype)


def _position_bounds(array):
    return ([float(v) for v in array.min(axis=0)],
            [float(v) for v in array.max(axis=0)])


def pack_geometry(document, name, vertices, normals=(), uvs=(), indices=()):
    """
    Pack one geometry unit into a new buffer of *document*.

    Args:
        document: GltfDocument receiving the buffer, views and accessors.
        name: Name of the geometry unit, used in errors and logs.
        vertices: Sequence of (x, y, z) positions. Required.
        normals: Sequence of (x, y, z) normals, may be empty.
        uvs: Sequence of (u, v) coordinates, may be empty.
        indices: Sequence of unsigned 16-bit indices, may be empty.

    Returns:
        PackedGeometry: Buffer index and accessor index per packed array.

    Raises:
        MissingGeometryError: If there are no positions.
        IndexRangeError: If an index is outside 0..MAX_INDEX_VALUE. The
            check is on index values, so a vertex array of exactly 65536
            entries is still accepted.
    """
    if vertices is None or len(vertices) == 0:
        raise MissingGeometryError(
            "{}: geometry has no vertex positions".format(name))

    arrays = [(POSITION_LAYOUT, _vertex_array(vertices, POSITION_LAYOUT, name))]
    if normals is not None and len(normals):
        arrays.append((NORMAL_LAYOUT, _vertex_array(normals, NORMAL_LAYOUT, name)))
    if uvs is not None and len(uvs):
        arrays.append((UV_LAYOUT, _vertex_array(uvs, UV_LAYOUT, name)))
    if indices is not None and len(indices):
        arrays.append((INDEX_LAYOUT, _index_array(indices, name)))

    blob = b''.join(array.tobytes() for _, array in arrays)
    buffer_index = document.add_buffer(blob)

    accessors = {}
    offset = 0
    for layout, array in arrays:
        count = len(array)
        stride = element_size(layout)
        byte_length = count * stride

        # glTF does not allow byteStride on index views.
        view_stride = stride if layout.target == pygltflib.ARRAY_BUFFER else None
        view = document.add_buffer_view(
            buffer_index, offset, byte_length,
            byte_stride=view_stride, target=layout.target)

        minimum = maximum = None
        if layout is POSITION_LAYOUT:
            minimum, maximum = _position_bounds(array)

        accessors[layout.semantic] = document.add_accessor(
            view, layout.component_type, layout.element_type, count,
            minimum=minimum, maximum=maximum)
        offset += byte_length

    log.debug("Packed '%s': %d bytes in buffer %d (%s)", name, offset,
              buffer_index, ", ".join(layout.semantic for layout, _ in arrays))
    return PackedGeometry(buffer_index, accessors)
