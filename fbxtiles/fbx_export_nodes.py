# ================================================================
#  FBX EXPORT NODES
# ================================================================
# Owned output structures of the flattening stage:
#   - TextureRef: Copied texture bytes and/or path.
#   - MaterialInfo: One normalized PBR material.
#   - MeshPartInfo: One flat, fully expanded triangle list.
#   - ExportScene: Material and part arrays plus axis convention.
#
# Downstream writers only ever read these; nothing here refers back
# into the parser's scene.
# ================================================================

# --------------------------------------------------------
# IMPORTS
# --------------------------------------------------------
from .fbx_types import (
    CoordinateAxis, DEFAULT_BASE_COLOR, DEFAULT_ALPHA, DEFAULT_EMISSION,
    DEFAULT_METALLIC, DEFAULT_ROUGHNESS
)


# --------------------------------------------------------
# TextureRef
# --------------------------------------------------------
class TextureRef:
    """
    A resolved texture slot. Both fields may be None (no texture).

    Attributes:
        content (bytes): Copy of the embedded image bytes.
        path (str): Copy of the texture path.
    """

    def __init__(self, content=None, path=None):
        self.content = content
        self.path = path

    @property
    def content_size(self):
        return len(self.content) if self.content else 0

    @property
    def is_empty(self):
        return self.content is None and self.path is None

    def release(self):
        self.content = None
        self.path = None


# --------------------------------------------------------
# MaterialInfo
# --------------------------------------------------------
class MaterialInfo:
    """
    Unified physically-based material.

    Attributes:
        name (str): Material name, None for the synthetic default.
        base_color (tuple): RGBA in 0..1.
        emissive (tuple): RGB.
        metallic (float): Clamped to 0..1.
        roughness (float): Clamped to 0..1.
        double_sided (bool): Double-sided flag.
        base_color_texture (TextureRef)
        normal_texture (TextureRef)
        emissive_texture (TextureRef)
    """

    def __init__(self, name=None, base_color=(*DEFAULT_BASE_COLOR, DEFAULT_ALPHA),
                 emissive=DEFAULT_EMISSION, metallic=DEFAULT_METALLIC,
                 roughness=DEFAULT_ROUGHNESS, double_sided=False,
                 base_color_texture=None, normal_texture=None, emissive_texture=None):
        self.name = name
        self.base_color = tuple(base_color)
        self.emissive = tuple(emissive)
        self.metallic = metallic
        self.roughness = roughness
        self.double_sided = double_sided
        self.base_color_texture = base_color_texture or TextureRef()
        self.normal_texture = normal_texture or TextureRef()
        self.emissive_texture = emissive_texture or TextureRef()

    @classmethod
    def create_default(cls):
        """White, opaque, non-metallic, fully rough, untextured."""
        return cls()

    def textures(self):
        return (self.base_color_texture, self.normal_texture, self.emissive_texture)

    def release(self):
        self.name = None
        for texture in self.textures():
            texture.release()


# --------------------------------------------------------
# MeshPartInfo
# --------------------------------------------------------
class MeshPartInfo:
    """
    A flat triangle list for one (node, mesh, material part).

    The four arrays are either all present with vertex_count > 0,
    or all None with vertex_count == 0.

    Attributes:
        name (str): Name of the node the part came from.
        material_index (int): Index into ExportScene.materials.
        vertex_count (int): Multiple of 3.
        positions (np.ndarray): float32 (vertex_count, 3), world space.
        normals (np.ndarray): float32 (vertex_count, 3), unit length.
        uvs (np.ndarray): float32 (vertex_count, 2).
        colors (np.ndarray): float32 (vertex_count, 4).
        has_normals / has_uvs / has_colors (bool): Source stream existed.
    """

    def __init__(self, name=None, material_index=0):
        self.name = name
        self.material_index = material_index
        self.vertex_count = 0
        self.positions = None
        self.normals = None
        self.uvs = None
        self.colors = None
        self.has_normals = False
        self.has_uvs = False
        self.has_colors = False

    @property
    def triangle_count(self):
        return self.vertex_count // 3

    @property
    def is_empty(self):
        return self.vertex_count == 0

    def assign_buffers(self, positions, normals, uvs, colors):
        self.positions = positions
        self.normals = normals
        self.uvs = uvs
        self.colors = colors
        self.vertex_count = len(positions)

    def release(self):
        """Drop all four buffers as one unit."""
        self.positions = None
        self.normals = None
        self.uvs = None
        self.colors = None
        self.vertex_count = 0


# --------------------------------------------------------
# ExportScene
# --------------------------------------------------------
class ExportScene:
    """
    Root of the flattened output. Owns every material and part and keeps
    the source scene alive until released.
    """

    def __init__(self, materials=None, parts=None, right_axis=CoordinateAxis.POSITIVE_X,
                 up_axis=CoordinateAxis.POSITIVE_Y, scene=None):
        self.materials = materials or []
        self.parts = parts or []
        self.right_axis = right_axis
        self.up_axis = up_axis
        self.scene = scene

    @property
    def material_count(self):
        return len(self.materials)

    @property
    def part_count(self):
        return len(self.parts)

    def release(self):
        """Release nested buffers first, then the underlying source scene."""
        for material in self.materials:
            material.release()
        for part in self.parts:
            part.name = None
            part.release()
        self.materials = []
        self.parts = []
        self.scene = None
