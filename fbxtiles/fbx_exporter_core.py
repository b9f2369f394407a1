# ================================================================
# EXPORTER CORE MODULE
# ================================================================
# This module defines the core logic of the flattening stage:
# loading an FBX file, normalizing every material, walking every
# node's material parts in order, and assembling the ExportScene
# that downstream writers (glTF, 3D Tiles) consume.
# ================================================================

# --------------------------------------------------------
# IMPORTS
# --------------------------------------------------------
from .fbx_types import BOLD, RESET, YELLOW, RED
from .fbx_export_nodes import ExportScene
from .fbx_loader import FBXSceneLoader, SceneLoadError
from .fbx_texture_manager import FBXTextureManager
from .fbx_material_factory import MaterialFactory
from .fbx_exporter_mesh import FBXMeshManager
from .fbx_log import log


# --------------------------------------------------------
# Material Lookup
# --------------------------------------------------------
def find_material_index(materials, material):
    """
    Position of `material` in the scene's material list, matched by identity.
    Unknown or missing materials map to 0.
    """
    if material is None:
        return 0
    for index, candidate in enumerate(materials):
        if candidate is material:
            return index
    log(f"WARNING: Material '{material.name}' not in scene list, using index 0", category="WARNING", indent=3)
    return 0


def count_parts(nodes):
    """One part per material part, or one implicit part, for each node with a mesh."""
    return sum(max(1, len(node.mesh.material_parts)) for node in nodes if node.mesh is not None)


# --------------------------------------------------------
# FBX EXPORTER CLASS
# --------------------------------------------------------
class FBX_Exporter:
    """
    Flattens an FBX file into an ExportScene.
    Handles loading, material normalization and mesh partitioning.
    """

    def __init__(self, filepath, flip_v=True, loader=None):
        self.filepath = filepath
        self.flip_v = flip_v
        self.error_message = None

        # Support classes
        self.loader = loader or FBXSceneLoader()
        self.texture_manager = FBXTextureManager()
        self.mesh_manager = FBXMeshManager(self.texture_manager, flip_v=flip_v)

    # --------------------------------------------------------
    # Resolve Part Material
    # --------------------------------------------------------
    @staticmethod
    def resolve_part_material(node, mesh, slot):
        """Node-local material slots first, then the mesh's own list, else None."""
        if 0 <= slot < len(node.materials):
            return node.materials[slot]
        if 0 <= slot < len(mesh.materials):
            return mesh.materials[slot]
        return None

    # --------------------------------------------------------
    # Build Export Scene
    # --------------------------------------------------------
    def build_export_scene(self, source_scene):
        """
        Assembles materials and parts from an already-loaded source scene.

        Args:
            source_scene (SourceScene): Flattened source scene

        Returns:
            ExportScene: Owned result; parts follow node order, then part order
        """
        log("[FBXExporter] Processing materials", category="MATERIAL")
        if source_scene.materials:
            materials = [MaterialFactory.create(material, self.texture_manager)
                         for material in source_scene.materials]
        else:
            log("- Scene has no materials, adding default material", category="MATERIAL", indent=1)
            materials = [MaterialFactory.create_default()]

        log(f"[FBXExporter] Processing {count_parts(source_scene.nodes)} mesh parts", category="MESH")
        parts = []
        for node in source_scene.nodes:
            mesh = node.mesh
            if mesh is None:
                continue
            log(f"[FBXExporter] Node: '{node.name}'", category="NODE", indent=1)

            if not mesh.material_parts:
                log("- Implicit part, no material", category="MESH", indent=2)
                parts.append(self.mesh_manager.build_part(
                    node, mesh, None, range(len(mesh.faces)), material_index=0))
                continue

            for material_part in mesh.material_parts:
                material = self.resolve_part_material(node, mesh, material_part.index)
                material_index = find_material_index(source_scene.materials, material)
                log(f"- Part {material_part.index}: material index {material_index}", category="MESH", indent=2)
                parts.append(self.mesh_manager.build_part(
                    node, mesh, material, material_part.face_indices, material_index=material_index))

        return ExportScene(materials=materials, parts=parts,
                           right_axis=source_scene.right_axis, up_axis=source_scene.up_axis,
                           scene=source_scene)

    # --------------------------------------------------------
    # Export
    # --------------------------------------------------------
    def export(self):
        """
        Loads the file and builds the export scene.

        Returns:
            ExportScene: The result, or None on load failure (see error_message)
        """
        print(f"\n{BOLD}{YELLOW}================================================================{RESET}")
        print(f"{BOLD}{YELLOW}                      FBX FLATTEN STARTED{RESET}")
        print(f"{BOLD}{YELLOW}================================================================{RESET}\n")

        self.error_message = None
        try:
            source_scene = self.loader.load(self.filepath)
        except SceneLoadError as exc:
            self.error_message = exc.message
            print(f"\n{BOLD}{RED}================================================================{RESET}")
            print(f"{BOLD}{RED}                      FBX FLATTEN FAILED{RESET}")
            print(f"{BOLD}{RED}================================================================{RESET}")
            log(self.error_message, category="ERROR")
            return None

        export_scene = self.build_export_scene(source_scene)

        print(f"\n{BOLD}{YELLOW}================================================================{RESET}")
        print(f"{BOLD}{YELLOW}                      FBX FLATTEN COMPLETED{RESET}")
        print(f"{BOLD}{YELLOW}================================================================{RESET}")
        log(f"Materials: {export_scene.material_count}, parts: {export_scene.part_count}", category="NODE")
        return export_scene


# --------------------------------------------------------
# Lifecycle Entry Points
# --------------------------------------------------------
def export_scene_from_file(filepath, flip_v=True):
    """
    Loads and flattens one FBX file.

    Returns:
        tuple: (ExportScene, None) on success, (None, diagnostic) on failure
    """
    exporter = FBX_Exporter(filepath, flip_v=flip_v)
    export_scene = exporter.export()
    if export_scene is None:
        return None, exporter.error_message
    return export_scene, None


def free_export_scene(export_scene):
    """Deep release of an export scene; None is accepted."""
    if export_scene is None:
        return
    export_scene.release()
