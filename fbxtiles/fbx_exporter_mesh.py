# ================================================================
# EXPORTER MESH MODULE
# ================================================================
# This module handles mesh-related operations for the FBX exporter:
# fan triangulation of polygonal faces, winding correction for
# mirrored transforms, world-space positions and normals, UV set
# selection with texture transforms, and vertex color defaults.
# Each call turns one (node, mesh, material part) into one flat,
# non-indexed triangle list.
# ================================================================

# --------------------------------------------------------
# IMPORTS
# --------------------------------------------------------
import numpy as np

from .fbx_types import DEFAULT_UV, DEFAULT_COLOR
from .fbx_export_nodes import MeshPartInfo
from .fbx_texture_manager import FBXTextureManager
from .fbx_math import (
    matrix_determinant, matrix_for_normals, transform_positions, transform_directions,
    normalize_rows, normalize_vec3, weighted_face_normal
)
from .fbx_log import log


# --------------------------------------------------------
# Triangulation Helpers
# --------------------------------------------------------
def count_triangles(faces):
    """Fan triangle count: faces with fewer than 3 corners contribute nothing."""
    return sum(face.num_indices - 2 for face in faces if face.num_indices >= 3)


def triangulate_face(out_indices, face):
    """
    Writes the fan triangulation of `face` as corner indices into
    `out_indices`: (0, 1, 2), (0, 2, 3), ... relative to the face.

    Args:
        out_indices (np.ndarray): Scratch buffer, at least 3 * (n - 2) long
        face (SourceFace): Polygon to triangulate

    Returns:
        int: Number of triangles written, 0 if the face is degenerate or
             the buffer is too small
    """
    if face.num_indices < 3:
        return 0
    tri_count = face.num_indices - 2
    if len(out_indices) < tri_count * 3:
        return 0

    offsets = np.arange(tri_count)
    out_indices[0:tri_count * 3:3] = face.index_begin
    out_indices[1:tri_count * 3:3] = face.index_begin + 1 + offsets
    out_indices[2:tri_count * 3:3] = face.index_begin + 2 + offsets
    return tri_count


def reserve_buffers(vertex_count):
    """
    Allocates positions, normals, UVs and colors as one unit. A MemoryError
    on any of them propagates and the arrays already reserved go with it.
    """
    return (np.empty((vertex_count, 3), dtype=np.float32),
            np.empty((vertex_count, 3), dtype=np.float32),
            np.empty((vertex_count, 2), dtype=np.float32),
            np.empty((vertex_count, 4), dtype=np.float32))


def gather_stream(stream, corners, default):
    """
    Looks up a vertex attribute for each corner. Corners outside the
    stream, and streams that do not exist, yield `default`.
    """
    width = len(default)
    out = np.tile(np.asarray(default, dtype=np.float64), (len(corners), 1))
    if not stream.exists or len(corners) == 0:
        return out

    valid = (corners >= 0) & (corners < len(stream.indices))
    value_indices = np.full(len(corners), -1, dtype=np.int64)
    value_indices[valid] = stream.indices[corners[valid]]
    valid &= (value_indices >= 0) & (value_indices < len(stream.values))

    values = stream.values.reshape(len(stream.values), -1)
    columns = min(width, values.shape[1])
    out[valid, :columns] = values[value_indices[valid], :columns]
    return out


# --------------------------------------------------------
# FBXMeshManager
# --------------------------------------------------------
class FBXMeshManager:
    """
    Class that manages mesh processing for the FBX exporter.
    Converts material parts of source meshes into MeshPartInfo buffers.
    """

    def __init__(self, texture_manager=None, flip_v=True):
        """
        Initializes the mesh manager.

        Args:
            texture_manager (FBXTextureManager): Resolver used to find the UV texture
            flip_v (bool): If True, output UVs use v' = 1 - v
        """
        self.texture_manager = texture_manager or FBXTextureManager()
        self.flip_v = flip_v

    # --------------------------------------------------------
    # Select UV Source
    # --------------------------------------------------------
    def select_uv_source(self, mesh, material):
        """
        Picks the UV stream for a part: the UV set named by the material's
        UV texture when the mesh has it, otherwise the default stream.

        Returns:
            tuple: (VertexStream, uv_to_texture matrix or None)
        """
        uv_stream = mesh.vertex_uv
        uv_transform = None

        uv_texture = self.texture_manager.resolve_texture(self.texture_manager.pick_uv_texture(material))
        if uv_texture is not None:
            uv_set = mesh.find_uv_set(uv_texture.uv_set)
            if uv_set is not None:
                uv_stream = uv_set.vertex_uv
                log(f"- UV set: '{uv_set.name}' (from texture '{uv_texture.name}')", category="MESH", indent=3)
            if uv_texture.has_uv_transform:
                uv_transform = uv_texture.uv_transform
                log("- Applying texture UV transform", category="MESH", indent=3)
        return uv_stream, uv_transform

    # --------------------------------------------------------
    # Build Part
    # --------------------------------------------------------
    def build_part(self, node, mesh, material, face_indices, name=None, material_index=0):
        """
        Converts the selected faces of a mesh into a flat triangle list.

        Args:
            node (SourceNode): Node providing the object-to-world transform
            mesh (SourceMesh): Mesh holding faces and attribute streams
            material (SourceMaterial): Material of this part, or None
            face_indices (list): Indices into mesh.faces
            name (str): Part name, defaults to the node name
            material_index (int): Index into the exported material array

        Returns:
            MeshPartInfo: The part; empty (vertex_count == 0) when there is
                          nothing to emit or the buffers could not be reserved
        """
        part = MeshPartInfo(name=name if name is not None else node.name, material_index=material_index)
        part.has_normals = mesh.vertex_normal.exists
        part.has_colors = mesh.vertex_color.exists

        uv_stream, uv_transform = self.select_uv_source(mesh, material)
        part.has_uvs = uv_stream.exists

        faces = []
        for face_index in face_indices:
            if 0 <= face_index < len(mesh.faces):
                faces.append(mesh.faces[face_index])
            else:
                log(f"WARNING: Face index {face_index} out of range, skipped", category="WARNING", indent=3)

        triangle_count = count_triangles(faces)
        vertex_count = triangle_count * 3
        log(f"- Faces: {len(faces)}, triangles: {triangle_count}", category="MESH", indent=3)
        if vertex_count == 0:
            log("- No triangles, part left empty", category="MESH", indent=3)
            return part

        max_tri_indices = mesh.max_face_triangles * 3
        if max_tri_indices == 0:
            return part

        try:
            positions, normals, uvs, colors = reserve_buffers(vertex_count)
            scratch = np.empty(max_tri_indices, dtype=np.int64)
        except MemoryError:
            log(f"WARNING: Could not reserve buffers for {vertex_count} vertices, part left empty",
                category="WARNING", indent=3)
            return part

        transform = node.geometry_to_world
        flip_winding = matrix_determinant(transform) < 0.0
        if flip_winding:
            log("- Mirrored transform, flipping triangle winding", category="MESH", indent=3)
        normal_matrix = matrix_for_normals(transform)

        # Corner index of every output vertex, in output order
        corners = np.empty(vertex_count, dtype=np.int64)
        face_normals = None
        if not part.has_normals:
            log("- No normals, using face normals", category="MESH", indent=3)
            face_normals = np.empty((vertex_count, 3), dtype=np.float64)

        out_index = 0
        for face in faces:
            if face.num_indices < 3:
                continue

            tri_count = triangulate_face(scratch, face)
            triangles = scratch[:tri_count * 3].reshape(tri_count, 3)
            if flip_winding:
                triangles = triangles[:, (0, 2, 1)]

            count = tri_count * 3
            corners[out_index:out_index + count] = triangles.reshape(-1)

            if face_normals is not None:
                face_corners = np.arange(face.index_begin, face.index_begin + face.num_indices)
                points = gather_stream(mesh.vertex_position, face_corners, (0.0, 0.0, 0.0))
                face_normals[out_index:out_index + count] = normalize_vec3(weighted_face_normal(points))

            out_index += count

        corners = corners[:out_index]

        local_positions = gather_stream(mesh.vertex_position, corners, (0.0, 0.0, 0.0))
        positions[:out_index] = transform_positions(transform, local_positions)

        if face_normals is None:
            source_normals = gather_stream(mesh.vertex_normal, corners, (0.0, 0.0, 0.0))
        else:
            source_normals = face_normals[:out_index]
        normals[:out_index] = normalize_rows(transform_directions(normal_matrix, source_normals))

        source_uvs = gather_stream(uv_stream, corners, DEFAULT_UV)
        if uv_transform is not None:
            uv3 = np.column_stack((source_uvs, np.zeros(len(source_uvs))))
            source_uvs = transform_positions(uv_transform, uv3)[:, :2]
        if self.flip_v:
            source_uvs[:, 1] = 1.0 - source_uvs[:, 1]
        uvs[:out_index] = source_uvs

        colors[:out_index] = gather_stream(mesh.vertex_color, corners, DEFAULT_COLOR)

        part.assign_buffers(positions[:out_index], normals[:out_index], uvs[:out_index], colors[:out_index])
        log(f"- Vertices: {part.vertex_count}", category="MESH", indent=3)
        return part
