# ================================================================
#  FBX SCENE DATA
# ================================================================
# High-level, detached view of a flattened FBX file for downstream
# writers. load_scene() runs the exporter, copies every material and
# part into plain objects, and releases the export scene before
# returning, so callers never hold the exporter's buffers.
# ================================================================

# --------------------------------------------------------
# IMPORTS
# --------------------------------------------------------
import os
import numpy as np

from .fbx_types import CoordinateAxis
from .fbx_loader import SceneLoadError
from .fbx_exporter_core import export_scene_from_file, free_export_scene
from .fbx_log import log


# --------------------------------------------------------
# Axis Directions
# --------------------------------------------------------
class AxisDir:
    """Axis direction of the output scene."""
    POS_X = "+X"
    NEG_X = "-X"
    POS_Y = "+Y"
    NEG_Y = "-Y"
    POS_Z = "+Z"
    NEG_Z = "-Z"
    UNKNOWN = "unknown"

    _BY_AXIS = {
        CoordinateAxis.POSITIVE_X: POS_X,
        CoordinateAxis.NEGATIVE_X: NEG_X,
        CoordinateAxis.POSITIVE_Y: POS_Y,
        CoordinateAxis.NEGATIVE_Y: NEG_Y,
        CoordinateAxis.POSITIVE_Z: POS_Z,
        CoordinateAxis.NEGATIVE_Z: NEG_Z,
    }

    @classmethod
    def from_axis(cls, value):
        """Maps a CoordinateAxis number to a direction; anything else is UNKNOWN."""
        return cls._BY_AXIS.get(value, cls.UNKNOWN)


# --------------------------------------------------------
# Texture Sources
# --------------------------------------------------------
class EmbeddedTexture:
    """Image bytes carried inside the FBX file."""

    def __init__(self, data, name=None):
        self.data = data
        self.name = name

    def __repr__(self):
        return f"EmbeddedTexture(name={self.name!r}, {len(self.data)} bytes)"


class FileTexture:
    """Image stored next to (or anywhere relative to) the FBX file."""

    def __init__(self, path):
        self.path = path

    def __repr__(self):
        return f"FileTexture({self.path!r})"


def texture_source(texture_ref, base_dir):
    """
    Converts a TextureRef into an EmbeddedTexture or a FileTexture.
    Relative paths are resolved against `base_dir`.

    Returns:
        EmbeddedTexture | FileTexture | None
    """
    if texture_ref.content:
        return EmbeddedTexture(bytes(texture_ref.content), texture_ref.path)
    if not texture_ref.path:
        return None
    path = texture_ref.path
    if not os.path.isabs(path):
        path = os.path.join(base_dir, path)
    return FileTexture(path)


# --------------------------------------------------------
# Detached Scene Classes
# --------------------------------------------------------
class SceneMaterial:
    """Copy of a MaterialInfo with textures as texture sources."""

    def __init__(self, material_info, base_dir):
        self.name = material_info.name
        self.base_color = tuple(material_info.base_color)
        self.emissive = tuple(material_info.emissive)
        self.metallic = material_info.metallic
        self.roughness = material_info.roughness
        self.double_sided = material_info.double_sided
        self.base_color_texture = texture_source(material_info.base_color_texture, base_dir)
        self.normal_texture = texture_source(material_info.normal_texture, base_dir)
        self.emissive_texture = texture_source(material_info.emissive_texture, base_dir)


class SceneMeshPart:
    """Copy of a MeshPartInfo; empty parts carry empty arrays."""

    def __init__(self, part_info):
        self.name = part_info.name
        self.material_index = part_info.material_index
        self.positions = self._copy(part_info.positions, 3)
        self.normals = self._copy(part_info.normals, 3)
        self.uvs = self._copy(part_info.uvs, 2)
        self.colors = self._copy(part_info.colors, 4)

    @staticmethod
    def _copy(buffer, width):
        if buffer is None:
            return np.empty((0, width), dtype=np.float32)
        return np.array(buffer, dtype=np.float32).reshape(-1, width)

    @property
    def vertex_count(self):
        return len(self.positions)


class SceneData:
    """Materials, parts and axis convention of one flattened FBX file."""

    def __init__(self, materials, parts, right_axis=AxisDir.POS_X, up_axis=AxisDir.POS_Y):
        self.materials = materials
        self.parts = parts
        self.right_axis = right_axis
        self.up_axis = up_axis


# --------------------------------------------------------
# Load Scene
# --------------------------------------------------------
def load_scene(filepath, flip_v=True):
    """
    Loads an FBX file into a detached SceneData.

    Args:
        filepath (str): Path to the .fbx file
        flip_v (bool): Forwarded to the mesh partitioner

    Returns:
        SceneData

    Raises:
        SceneLoadError: when the file cannot be loaded or holds no mesh parts
    """
    base_dir = os.path.dirname(os.path.abspath(filepath))

    export_scene, error_message = export_scene_from_file(filepath, flip_v=flip_v)
    if export_scene is None:
        raise SceneLoadError(f"FBX load failed: {error_message or 'Unknown error'}")

    try:
        right_axis = AxisDir.from_axis(export_scene.right_axis)
        up_axis = AxisDir.from_axis(export_scene.up_axis)
        materials = [SceneMaterial(material, base_dir) for material in export_scene.materials]
        parts = [SceneMeshPart(part) for part in export_scene.parts]
    finally:
        free_export_scene(export_scene)

    if not parts:
        raise SceneLoadError("no mesh data found in FBX")

    log(f"Scene data: {len(materials)} materials, {len(parts)} parts, axes {right_axis}/{up_axis}",
        category="LOADER")
    return SceneData(materials, parts, right_axis, up_axis)


def flip_v(scene_data):
    """Flips the V coordinate of every part in place: v' = 1 - v."""
    for part in scene_data.parts:
        if len(part.uvs):
            part.uvs[:, 1] = 1.0 - part.uvs[:, 1]
    return scene_data
