# ================================================================
#  FBXTILES PACKAGE
# ================================================================
# Scene flattening and material normalization for FBX files:
# loads a scene, resolves every material to one PBR description and
# turns every node's mesh parts into flat world-space triangle lists
# ready for glTF / 3D Tiles writers.
# ================================================================

from .fbx_types import TextureType, CoordinateAxis
from .fbx_loader import FBXSceneLoader, LoadOptions, SceneLoadError
from .fbx_export_nodes import TextureRef, MaterialInfo, MeshPartInfo, ExportScene
from .fbx_material_factory import MaterialFactory
from .fbx_texture_manager import FBXTextureManager
from .fbx_exporter_mesh import FBXMeshManager
from .fbx_exporter_core import FBX_Exporter, export_scene_from_file, free_export_scene
from .fbx_scene_data import (
    AxisDir, EmbeddedTexture, FileTexture, SceneMaterial, SceneMeshPart, SceneData,
    load_scene, flip_v
)

__version__ = "0.1.0"
