# ================================================================
#  FBX SOURCE SCENE NODES
# ================================================================
# This module defines the read-only object model produced by the
# scene loader and consumed by the material normalizer and the mesh
# partitioner.
#
# Classes included:
#   - SourceTexture: Leaf, layered or shader texture.
#   - MaterialMap: One optionally-valued, optionally-textured field.
#   - ClassicMaps / PbrMaps: The two parallel shading descriptions.
#   - SourceMaterial: A material holding both descriptions plus flags.
#   - VertexStream / UVSet: Independently-indexed vertex attributes.
#   - SourceFace / MaterialPart / SourceMesh: Polygonal geometry.
#   - SourceNode / SourceScene: Flattened node list with world transforms.
#
# These classes hold only data copied out of the parser; nothing in the
# conversion stage mutates them.
# ================================================================

# --------------------------------------------------------
# IMPORTS
# --------------------------------------------------------
import numpy as np

from .fbx_types import TextureType, CoordinateAxis


# --------------------------------------------------------
# SourceTexture
# --------------------------------------------------------
class SourceTexture:
    """
    A texture as exposed by the scene library.

    Attributes:
        name (str): Texture name.
        type (int): One of TextureType.
        layers (list): Sub-textures of a LAYERED texture, bottom to top.
        main_texture (SourceTexture): Texture wrapped by a SHADER texture.
        file_textures (list): FILE textures this texture depends on.
        content (bytes): Embedded image bytes, empty when not embedded.
        filename (str): Path as written in the file.
        relative_filename (str): Path relative to the FBX file.
        absolute_filename (str): Absolute path recorded by the authoring tool.
        uv_set (str): Name of the UV set the texture samples.
        uv_transform (np.ndarray): Optional 4x4 UV-to-texture matrix.
    """

    def __init__(self, name="", type=TextureType.FILE, layers=None, main_texture=None,
                 file_textures=None, content=b"", filename="", relative_filename="",
                 absolute_filename="", uv_set="", uv_transform=None):
        self.name = name
        self.type = type
        self.layers = layers or []
        self.main_texture = main_texture
        self.file_textures = file_textures or []
        self.content = content
        self.filename = filename
        self.relative_filename = relative_filename
        self.absolute_filename = absolute_filename
        self.uv_set = uv_set
        self.uv_transform = None if uv_transform is None else np.asarray(uv_transform, dtype=np.float64)

    @property
    def has_uv_transform(self):
        return self.uv_transform is not None


# --------------------------------------------------------
# MaterialMap
# --------------------------------------------------------
class MaterialMap:
    """
    A single material field: an optional value and an optional texture.
    The value is either a float or a sequence of components.
    """

    def __init__(self, value=None, texture=None):
        self.value = value
        self.texture = texture

    @property
    def has_value(self):
        return self.value is not None

    @property
    def value_components(self):
        if self.value is None:
            return 0
        if isinstance(self.value, (int, float)):
            return 1
        return len(self.value)

    def real(self, default):
        """Scalar view of the value: the value itself or its first component."""
        if not self.has_value:
            return default
        if isinstance(self.value, (int, float)):
            return float(self.value)
        if self.value_components == 0:
            return default
        return float(self.value[0])

    def vec3(self, default):
        """Color view of the value, only when at least three components are present."""
        if self.has_value and self.value_components >= 3:
            return tuple(float(c) for c in self.value[:3])
        return default


# --------------------------------------------------------
# Shading Descriptions
# --------------------------------------------------------
class ClassicMaps:
    """Classic (Lambert/Phong) shading description."""

    FIELDS = ("diffuse_color", "diffuse_factor", "specular_exponent", "transparency_factor",
              "emission_color", "emission_factor", "normal_map", "bump")

    def __init__(self, **maps):
        for field in self.FIELDS:
            setattr(self, field, maps.pop(field, None) or MaterialMap())
        if maps:
            raise TypeError(f"Unknown classic material fields: {', '.join(sorted(maps))}")


class PbrMaps:
    """Physically-based shading description."""

    FIELDS = ("base_color", "base_factor", "metalness", "roughness", "glossiness",
              "emission_color", "emission_factor", "normal_map")

    def __init__(self, **maps):
        for field in self.FIELDS:
            setattr(self, field, maps.pop(field, None) or MaterialMap())
        if maps:
            raise TypeError(f"Unknown PBR material fields: {', '.join(sorted(maps))}")


# --------------------------------------------------------
# SourceMaterial
# --------------------------------------------------------
class SourceMaterial:
    """
    A material carrying two independently-populated shading descriptions.

    Attributes:
        name (str): The material name.
        classic (ClassicMaps): Classic description.
        pbr (PbrMaps): PBR description.
        pbr_enabled (bool): Feature flag marking the PBR description as authoritative.
        double_sided (bool): Double-sided feature flag.
    """

    def __init__(self, name="", classic=None, pbr=None, pbr_enabled=False, double_sided=False):
        self.name = name
        self.classic = classic or ClassicMaps()
        self.pbr = pbr or PbrMaps()
        self.pbr_enabled = pbr_enabled
        self.double_sided = double_sided


# --------------------------------------------------------
# Vertex Attributes
# --------------------------------------------------------
class VertexStream:
    """
    An indexed vertex attribute: `indices[corner]` selects a row of `values`.
    A stream without values does not exist.
    """

    def __init__(self, values=None, indices=None):
        if values is None:
            self.values = None
            self.indices = None
            return
        self.values = np.asarray(values, dtype=np.float64)
        if indices is None:
            indices = np.arange(len(self.values))
        self.indices = np.asarray(indices, dtype=np.int64)

    @property
    def exists(self):
        return self.values is not None and len(self.values) > 0


class UVSet:
    """A named UV stream."""

    def __init__(self, name, vertex_uv):
        self.name = name
        self.vertex_uv = vertex_uv


# --------------------------------------------------------
# Geometry
# --------------------------------------------------------
class SourceFace:
    """A polygon spanning corners [index_begin, index_begin + num_indices)."""

    def __init__(self, index_begin, num_indices):
        self.index_begin = index_begin
        self.num_indices = num_indices


class MaterialPart:
    """Faces of a mesh sharing the material slot `index`."""

    def __init__(self, index, face_indices):
        self.index = index
        self.face_indices = list(face_indices)


class SourceMesh:
    """
    Polygonal mesh with independently-indexed attribute streams.

    Attributes:
        name (str): Mesh name.
        faces (list): SourceFace list.
        vertex_position (VertexStream): Mandatory positions (3 or 4 components).
        vertex_normal (VertexStream): Optional normals.
        vertex_uv (VertexStream): Default UV stream.
        vertex_color (VertexStream): Optional RGBA colors.
        uv_sets (list): Named UVSet list.
        material_parts (list): MaterialPart list, empty for a single implicit material.
        materials (list): Materials referenced by slot index.
    """

    def __init__(self, name="", faces=None, vertex_position=None, vertex_normal=None,
                 vertex_uv=None, vertex_color=None, uv_sets=None, material_parts=None,
                 materials=None):
        self.name = name
        self.faces = faces or []
        self.vertex_position = vertex_position or VertexStream()
        self.vertex_normal = vertex_normal or VertexStream()
        self.vertex_uv = vertex_uv or VertexStream()
        self.vertex_color = vertex_color or VertexStream()
        self.uv_sets = uv_sets or []
        self.material_parts = material_parts or []
        self.materials = materials or []

    @property
    def max_face_triangles(self):
        return max((max(0, face.num_indices - 2) for face in self.faces), default=0)

    def find_uv_set(self, name):
        if not name:
            return None
        for uv_set in self.uv_sets:
            if uv_set.name == name:
                return uv_set
        return None


# --------------------------------------------------------
# Nodes & Scene
# --------------------------------------------------------
class SourceNode:
    """
    A scene node with its static object-to-world transform.

    Attributes:
        name (str): Node name.
        geometry_to_world (np.ndarray): 4x4 column-vector transform.
        mesh (SourceMesh): Attached mesh or None.
        materials (list): Node-local material slots.
    """

    def __init__(self, name="", geometry_to_world=None, mesh=None, materials=None):
        self.name = name
        if geometry_to_world is None:
            geometry_to_world = np.identity(4)
        self.geometry_to_world = np.asarray(geometry_to_world, dtype=np.float64)
        self.mesh = mesh
        self.materials = materials or []


class SourceScene:
    """Flattened scene: every node in traversal order and every material."""

    def __init__(self, nodes=None, materials=None, right_axis=CoordinateAxis.POSITIVE_X,
                 up_axis=CoordinateAxis.POSITIVE_Y):
        self.nodes = nodes or []
        self.materials = materials or []
        self.right_axis = right_axis
        self.up_axis = up_axis
