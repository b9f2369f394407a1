# ================================================================
#  FBX SCENE LOADER
# ================================================================
# This module is the only place that talks to the external scene
# library (pyassimp). It:
#   1) Loads the file once with a fixed configuration.
#   2) Copies nodes, meshes, materials and textures out of the
#      parser's scene into the read-only fbx_scene_nodes model.
#   3) Lets the parser release its own scene.
#
# On failure a SceneLoadError carrying a bounded, human-readable
# diagnostic is raised and nothing is returned.
# ================================================================

# --------------------------------------------------------
# IMPORTS
# --------------------------------------------------------
import os
import sys
import math
import numpy as np

from .fbx_types import (
    TextureType, TARGET_RIGHT_AXIS, TARGET_UP_AXIS, TARGET_FRONT_AXIS, TARGET_UNIT_METERS,
    FBX_DEFAULT_UNIT_METERS, ERROR_MESSAGE_LIMIT, EMBEDDED_TEXTURE_PREFIX
)
from .fbx_scene_nodes import (
    SourceScene, SourceNode, SourceMesh, SourceFace, VertexStream, UVSet, MaterialPart,
    SourceMaterial, ClassicMaps, PbrMaps, MaterialMap, SourceTexture
)
from .fbx_math import normalize_rows, basis_change
from .fbx_log import log


# --------------------------------------------------------
# Parser Texture Types
# --------------------------------------------------------
class ParserTextureType:
    """Texture semantics used by the parser's material properties."""
    NONE = 0
    DIFFUSE = 1
    SPECULAR = 2
    AMBIENT = 3
    EMISSIVE = 4
    HEIGHT = 5
    NORMALS = 6
    SHININESS = 7
    OPACITY = 8
    BASE_COLOR = 12
    NORMAL_CAMERA = 13
    EMISSION_COLOR = 14
    METALNESS = 15
    DIFFUSE_ROUGHNESS = 16


class SceneLoadError(Exception):
    """The scene file could not be read. The message is the diagnostic."""

    def __init__(self, message):
        message = str(message)
        if len(message) > ERROR_MESSAGE_LIMIT:
            message = message[:ERROR_MESSAGE_LIMIT - 3] + "..."
        super().__init__(message)
        self.message = message


# --------------------------------------------------------
# Load Options
# --------------------------------------------------------
class LoadOptions:
    """
    Fixed load configuration of the flattening stage.
    Normal generation and tangents map onto parser flags; axes, unit,
    normal normalization and the fourth position component are applied
    while copying the parser scene.
    """

    def __init__(self):
        self.generate_missing_normals = True
        self.normalize_normals = True
        self.normalize_tangents = True
        self.retain_vertex_attrib_w = True
        self.target_right_axis = TARGET_RIGHT_AXIS
        self.target_up_axis = TARGET_UP_AXIS
        self.target_front_axis = TARGET_FRONT_AXIS
        self.target_unit_meters = TARGET_UNIT_METERS

    def processing_flags(self, postprocess):
        """
        Post-processing flags for the parser. Faces are left as polygons;
        triangulation happens in the partitioner.
        """
        flags = postprocess.aiProcess_ValidateDataStructure
        if self.generate_missing_normals:
            flags |= postprocess.aiProcess_GenNormals
        if self.normalize_tangents:
            flags |= postprocess.aiProcess_CalcTangentSpace
        return flags


# --------------------------------------------------------
# Parser Import
# --------------------------------------------------------
def import_parser():
    """
    Imports pyassimp lazily so the rest of the package works without the
    native library. pyassimp signals a missing library with AssimpError,
    which derives from BaseException.
    """
    try:
        import pyassimp
        import pyassimp.postprocess
    except BaseException as exc:
        errors = sys.modules.get("pyassimp.errors")
        if isinstance(exc, ImportError) or (errors is not None and isinstance(exc, errors.AssimpError)):
            raise SceneLoadError(f"FBX parser unavailable: {exc}") from exc
        raise
    return pyassimp


# --------------------------------------------------------
# Property Helpers
# --------------------------------------------------------
def _property(properties, key, semantic=0):
    """Looks up a parser material property by (key, semantic); None if missing."""
    if properties is None:
        return None
    value = dict.get(properties, (key, semantic))
    if value is None and semantic == 0:
        value = dict.get(properties, key)
    return value


def _first_property(properties, *keys):
    for key in keys:
        value = _property(properties, key)
        if value is not None:
            return value
    return None


def _as_value(value):
    """Normalizes a parser property to a float or a tuple of floats."""
    if value is None or isinstance(value, str):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        values = [float(v) for v in np.asarray(value, dtype=np.float64).reshape(-1)]
    except (TypeError, ValueError):
        return None
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return tuple(values)


def _as_string(value):
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _uv_transform_matrix(value):
    """
    Builds a 4x4 UV-to-texture matrix from (translation u, v, scale u, v,
    rotation). Returns None for identity or malformed values.
    """
    values = _as_value(value)
    if not isinstance(values, tuple) or len(values) < 5:
        return None
    tu, tv, su, sv, rotation = values[:5]
    if (tu, tv, su, sv, rotation) == (0.0, 0.0, 1.0, 1.0, 0.0):
        return None

    cos_r, sin_r = math.cos(rotation), math.sin(rotation)
    matrix = np.identity(4)
    matrix[0, 0] = cos_r * su
    matrix[0, 1] = -sin_r * sv
    matrix[1, 0] = sin_r * su
    matrix[1, 1] = cos_r * sv
    matrix[0, 3] = tu
    matrix[1, 3] = tv
    return matrix


def _embedded_content(ai_texture):
    data = getattr(ai_texture, "data", None)
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    try:
        return np.asarray(data, dtype=np.uint8).tobytes()
    except (TypeError, ValueError) as exc:
        log(f"WARNING: Unreadable embedded texture data: {exc}", category="WARNING", indent=2)
        return b""


# --------------------------------------------------------
# FBX Scene Loader
# --------------------------------------------------------
class FBXSceneLoader:
    """
    Loads an FBX file and converts the parser's scene into a SourceScene.

    The conversion happens inside the parser's load context: once load()
    returns, no reference into the parser's scene is kept.
    """

    def __init__(self, options=None):
        self.options = options or LoadOptions()
        self._texture_cache = {}

    # --------------------------------------------------------
    # Load
    # --------------------------------------------------------
    def load(self, filepath):
        """
        Loads one FBX file.

        :param filepath: Path to the .fbx file.
        :return: SourceScene
        :raises SceneLoadError: when the parser is missing or rejects the file.
        """
        log(f"[FBXSceneLoader] Loading '{filepath}'", category="LOADER")
        if not os.path.isfile(filepath):
            log(f"[FBXSceneLoader] File not found: '{filepath}'", category="ERROR", indent=1)
            raise SceneLoadError(f"File not found: {filepath}")

        pyassimp = import_parser()
        flags = self.options.processing_flags(pyassimp.postprocess)

        try:
            with pyassimp.load(filepath, processing=flags) as ai_scene:
                scene = self.convert_scene(ai_scene)
        except pyassimp.errors.AssimpError as exc:
            log(f"[FBXSceneLoader] Parser error: {exc}", category="ERROR", indent=1)
            raise SceneLoadError(f"Failed to load '{filepath}': {exc}") from exc

        log(f"[FBXSceneLoader] Loaded {len(scene.nodes)} nodes, {len(scene.materials)} materials",
            category="LOADER", indent=1)
        return scene

    # --------------------------------------------------------
    # Convert Scene
    # --------------------------------------------------------
    def convert_scene(self, ai_scene):
        """Copies the parser scene into a SourceScene."""
        self._texture_cache = {}
        embedded = list(getattr(ai_scene, "textures", None) or [])
        materials = [self.convert_material(ai_material, embedded)
                     for ai_material in (getattr(ai_scene, "materials", None) or [])]

        metadata = self.file_metadata(ai_scene)
        unit_scale = self.unit_scale(metadata)
        root_transform = self.axis_conversion(metadata) @ np.diag([unit_scale, unit_scale, unit_scale, 1.0])
        log(f"- Unit scale to meters: {unit_scale:g}", category="LOADER", indent=1)

        nodes = []
        root = getattr(ai_scene, "rootnode", None)
        if root is not None:
            self.convert_node(root, root_transform, materials, nodes)

        return SourceScene(nodes=nodes, materials=materials,
                           right_axis=self.options.target_right_axis,
                           up_axis=self.options.target_up_axis)

    @staticmethod
    def file_metadata(ai_scene):
        """Global settings the parser reports for the file, on the scene or its root node."""
        for owner in (ai_scene, getattr(ai_scene, "rootnode", None)):
            metadata = getattr(owner, "metadata", None)
            if isinstance(metadata, dict) and metadata:
                return metadata
        return {}

    def unit_scale(self, metadata):
        """Scale from file units to the target unit, from the file's UnitScaleFactor."""
        unit_meters = FBX_DEFAULT_UNIT_METERS
        factor = _as_value(metadata.get("UnitScaleFactor"))
        if isinstance(factor, float) and factor > 0.0:
            unit_meters = factor * FBX_DEFAULT_UNIT_METERS
        return unit_meters / self.options.target_unit_meters

    @staticmethod
    def file_axes(metadata):
        """
        (right, up, front) of the file as CoordinateAxis numbers, from the
        CoordAxis / UpAxis / FrontAxis settings and their signs. None when
        any of the three is missing.
        """
        axes = []
        for key in ("CoordAxis", "UpAxis", "FrontAxis"):
            index = _as_value(metadata.get(key))
            if not isinstance(index, float):
                return None
            sign = _as_value(metadata.get(key + "Sign", 1))
            negative = isinstance(sign, float) and sign < 0.0
            axes.append(int(index) * 2 + (1 if negative else 0))
        return tuple(axes)

    def axis_conversion(self, metadata):
        """
        Rotation (or reflection) from the file's axis convention to the
        target axes. Files without axis settings are taken as already
        matching the target.
        """
        source = self.file_axes(metadata)
        if source is None:
            return np.identity(4)

        target = (self.options.target_right_axis, self.options.target_up_axis, self.options.target_front_axis)
        matrix = basis_change(source, target)
        if matrix is None:
            log(f"WARNING: Inconsistent file axes {source}, geometry left unrotated", category="WARNING", indent=1)
            return np.identity(4)

        if source != target:
            log(f"- Axis conversion: file axes {source} to {target}", category="LOADER", indent=1)
        return matrix

    # --------------------------------------------------------
    # Convert Node
    # --------------------------------------------------------
    def convert_node(self, ai_node, parent_transform, materials, out_nodes):
        """Depth-first flattening with accumulated world transforms."""
        local = np.asarray(getattr(ai_node, "transformation", np.identity(4)), dtype=np.float64).reshape(4, 4)
        world = parent_transform @ local
        name = _as_string(getattr(ai_node, "name", ""))

        ai_meshes = list(getattr(ai_node, "meshes", None) or [])
        mesh = self.convert_meshes(name, ai_meshes, materials) if ai_meshes else None
        out_nodes.append(SourceNode(name=name, geometry_to_world=world, mesh=mesh))

        for child in getattr(ai_node, "children", None) or []:
            self.convert_node(child, world, materials, out_nodes)

    # --------------------------------------------------------
    # Convert Meshes
    # --------------------------------------------------------
    def convert_meshes(self, name, ai_meshes, materials):
        """
        Merges the parser's per-material sub-meshes of one node into a single
        SourceMesh with one MaterialPart per sub-mesh.
        """
        positions, normals, colors, indices = [], [], [], []
        uv_channels = {}
        faces, parts, mesh_materials = [], [], []
        has_normals = True
        has_colors = True
        uv_counts = []
        vertex_offset = 0
        position_width = 4 if self.options.retain_vertex_attrib_w else 3

        for part_index, ai_mesh in enumerate(ai_meshes):
            vertices = np.asarray(ai_mesh.vertices, dtype=np.float64)
            if vertices.ndim != 2 or vertices.shape[1] < 3:
                vertices = vertices.reshape(-1, 3)
            vertices = vertices[:, :position_width]
            vertex_count = len(vertices)
            positions.append(vertices)

            mesh_normals = np.asarray(getattr(ai_mesh, "normals", []), dtype=np.float64)
            if mesh_normals.size == vertex_count * 3 and vertex_count > 0:
                normals.append(mesh_normals.reshape(-1, 3))
            else:
                has_normals = False

            mesh_colors = np.asarray(getattr(ai_mesh, "colors", []), dtype=np.float64)
            if mesh_colors.size >= vertex_count * 4 and vertex_count > 0:
                colors.append(mesh_colors.reshape(-1, vertex_count, 4)[0])
            else:
                has_colors = False

            texcoords = np.asarray(getattr(ai_mesh, "texturecoords", []), dtype=np.float64)
            channel_count = 0
            if texcoords.size and vertex_count > 0:
                texcoords = texcoords.reshape(-1, vertex_count, texcoords.shape[-1])
                channel_count = len(texcoords)
                for channel in range(channel_count):
                    uv_channels.setdefault(channel, []).append(texcoords[channel][:, :2])
            uv_counts.append(channel_count)

            face_ids = []
            for ai_face in getattr(ai_mesh, "faces", None) or []:
                corner_vertices = [int(i) + vertex_offset for i in np.asarray(ai_face).reshape(-1)]
                face_ids.append(len(faces))
                faces.append(SourceFace(len(indices), len(corner_vertices)))
                indices.extend(corner_vertices)

            parts.append(MaterialPart(part_index, face_ids))
            material_index = int(getattr(ai_mesh, "materialindex", 0))
            mesh_materials.append(materials[material_index] if 0 <= material_index < len(materials) else None)
            vertex_offset += vertex_count

        # Sub-meshes without a fourth component get w = 1
        width = max((block.shape[1] for block in positions), default=3)
        positions = [np.column_stack((block, np.ones(len(block)))) if block.shape[1] < width else block
                     for block in positions]

        normal_values = np.concatenate(normals) if has_normals and normals else None
        if normal_values is not None and self.options.normalize_normals:
            normal_values = normalize_rows(normal_values)

        # A stream exists only when every sub-mesh provides it
        uv_set_count = min(uv_counts) if uv_counts else 0
        uv_sets = [UVSet(self.uv_set_name(channel), VertexStream(np.concatenate(uv_channels[channel]), indices))
                   for channel in range(uv_set_count)]

        mesh = SourceMesh(
            name=name,
            faces=faces,
            vertex_position=VertexStream(np.concatenate(positions) if positions else None, indices),
            vertex_normal=VertexStream(normal_values, indices),
            vertex_uv=uv_sets[0].vertex_uv if uv_sets else VertexStream(),
            vertex_color=VertexStream(np.concatenate(colors) if has_colors and colors else None, indices),
            uv_sets=uv_sets,
            material_parts=parts,
            materials=mesh_materials,
        )
        log(f"- Mesh '{name}': {len(faces)} faces, {len(parts)} material parts, {uv_set_count} UV sets",
            category="LOADER", indent=1)
        return mesh

    @staticmethod
    def uv_set_name(channel):
        return f"UVChannel_{channel + 1}"

    # --------------------------------------------------------
    # Convert Material
    # --------------------------------------------------------
    def convert_material(self, ai_material, embedded):
        """Splits the parser's material properties into classic and PBR maps."""
        props = getattr(ai_material, "properties", None)

        def field(value, texture_type=None):
            texture = None
            if texture_type is not None:
                texture = self.convert_texture(props, texture_type, embedded)
            return MaterialMap(_as_value(value), texture)

        transparency = _first_property(props, "transparencyfactor", "TransparencyFactor")
        if transparency is None:
            opacity = _as_value(_property(props, "opacity"))
            if isinstance(opacity, float):
                transparency = 1.0 - opacity

        classic = ClassicMaps(
            diffuse_color=field(_first_property(props, "diffuse", "DiffuseColor"), ParserTextureType.DIFFUSE),
            diffuse_factor=field(_property(props, "DiffuseFactor")),
            specular_exponent=field(_first_property(props, "shininess", "ShininessExponent")),
            transparency_factor=field(transparency),
            emission_color=field(_first_property(props, "emissive", "EmissiveColor"), ParserTextureType.EMISSIVE),
            emission_factor=field(_property(props, "EmissiveFactor")),
            normal_map=field(None, ParserTextureType.NORMALS),
            bump=field(None, ParserTextureType.HEIGHT),
        )
        pbr = PbrMaps(
            base_color=field(_first_property(props, "base", "Maya|base_color"), ParserTextureType.BASE_COLOR),
            base_factor=field(_property(props, "Maya|base")),
            metalness=field(_first_property(props, "metallicFactor", "Maya|metalness")),
            roughness=field(_first_property(props, "roughnessFactor", "Maya|specular_roughness")),
            glossiness=field(_property(props, "glossinessFactor")),
            emission_color=field(_property(props, "Maya|emission_color"), ParserTextureType.EMISSION_COLOR),
            emission_factor=field(_first_property(props, "emissiveIntensity", "Maya|emission")),
            normal_map=field(None, ParserTextureType.NORMAL_CAMERA),
        )

        two_sided = _as_value(_property(props, "twosided"))
        name = _as_string(_property(props, "name"))
        log(f"- Material '{name}'", category="LOADER", indent=1)
        return SourceMaterial(
            name=name,
            classic=classic,
            pbr=pbr,
            pbr_enabled=_property(props, "Maya|TypeId") is not None,
            double_sided=bool(two_sided) if two_sided is not None else False,
        )

    # --------------------------------------------------------
    # Convert Texture
    # --------------------------------------------------------
    def convert_texture(self, props, texture_type, embedded):
        """
        Builds a FILE SourceTexture for a texture slot. References of the
        form '*N' bind the N-th embedded texture's content. Textures with the
        same path share one SourceTexture.
        """
        path = _as_string(_property(props, "file", texture_type))
        if not path:
            return None

        uv_source = _as_value(_property(props, "uvwsrc", texture_type))
        uv_set = self.uv_set_name(int(uv_source)) if isinstance(uv_source, float) else ""
        uv_transform = _uv_transform_matrix(_property(props, "uvtrafo", texture_type))

        cache_key = (path, uv_set, None if uv_transform is None else uv_transform.tobytes())
        if cache_key in self._texture_cache:
            return self._texture_cache[cache_key]

        content = b""
        filename = path
        if path.startswith(EMBEDDED_TEXTURE_PREFIX):
            try:
                ai_texture = embedded[int(path[len(EMBEDDED_TEXTURE_PREFIX):])]
            except (ValueError, IndexError):
                log(f"WARNING: Embedded texture '{path}' not found", category="WARNING", indent=2)
                return None
            content = _embedded_content(ai_texture)
            filename = _as_string(getattr(ai_texture, "filename", ""))

        texture = SourceTexture(
            name=os.path.basename(filename) or path,
            type=TextureType.FILE,
            content=content,
            filename=filename,
            relative_filename=filename if filename and not os.path.isabs(filename) else "",
            absolute_filename=filename if filename and os.path.isabs(filename) else "",
            uv_set=uv_set,
            uv_transform=uv_transform,
        )
        self._texture_cache[cache_key] = texture
        return texture
