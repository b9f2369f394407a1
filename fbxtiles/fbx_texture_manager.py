# ================================================================
# TEXTURE MANAGER
# ================================================================
# Resolves texture indirection (layered and shader textures) down to
# a leaf texture, picks which texture feeds each output slot, and
# copies the leaf's bytes and path into an owned TextureRef.
# ================================================================

# --------------------------------------------------------
# IMPORTS
# --------------------------------------------------------
from .fbx_types import TextureType, MAX_TEXTURE_DEPTH
from .fbx_export_nodes import TextureRef
from .fbx_log import log


# --------------------------------------------------------
# FBX Texture Manager
# --------------------------------------------------------
class FBXTextureManager:
    """
    Class that manages texture lookups for the material normalizer and
    the mesh partitioner. Never modifies the source textures.
    """

    def __init__(self, max_depth=MAX_TEXTURE_DEPTH):
        """
        Initializes the texture manager.

        Args:
            max_depth (int): Number of layered/shader unwraps allowed before a
                             chain is treated as cyclic and resolves to nothing
        """
        self.max_depth = max_depth

    # --------------------------------------------------------
    # Resolve Texture
    # --------------------------------------------------------
    def resolve_texture(self, texture):
        """
        Follows layered textures (topmost layer) and shader textures (main
        texture) until a leaf is reached. A leaf with neither content nor a
        path falls back to its first referenced file texture.

        Args:
            texture (SourceTexture): Texture bound to a material field, or None

        Returns:
            SourceTexture: The leaf texture, or None if nothing can be resolved
        """
        depth = 0
        while texture is not None:
            if texture.type == TextureType.LAYERED and texture.layers:
                next_texture = texture.layers[-1]
                log(f"Unwrapping layered texture '{texture.name}' ({len(texture.layers)} layers)",
                    category="TEXTURE", indent=2)
            elif texture.type == TextureType.SHADER and texture.main_texture is not None:
                next_texture = texture.main_texture
                log(f"Unwrapping shader texture '{texture.name}'", category="TEXTURE", indent=2)
            else:
                break

            depth += 1
            if depth > self.max_depth:
                log(f"WARNING: Texture chain from '{texture.name}' exceeds {self.max_depth} levels, ignoring it",
                    category="WARNING", indent=2)
                return None
            texture = next_texture

        if texture is None:
            return None

        if not self.has_direct_content(texture) and texture.file_textures:
            log(f"Texture '{texture.name}' has no content, using file texture "
                f"'{texture.file_textures[0].name}'", category="TEXTURE", indent=2)
            return texture.file_textures[0]
        return texture

    @staticmethod
    def has_direct_content(texture):
        return bool(texture.content) or bool(
            texture.filename or texture.relative_filename or texture.absolute_filename)

    @staticmethod
    def texture_path(texture):
        """Path by priority: filename > relative filename > absolute filename."""
        for path in (texture.filename, texture.relative_filename, texture.absolute_filename):
            if path:
                return path
        return None

    # --------------------------------------------------------
    # Fill Texture Ref
    # --------------------------------------------------------
    def fill_texture_ref(self, texture, slot=""):
        """
        Builds an owned TextureRef for a material field's texture.

        A failed copy of either field leaves only that field absent.

        Args:
            texture (SourceTexture): Bound texture, or None
            slot (str): Slot name used in log messages

        Returns:
            TextureRef: Possibly empty texture reference
        """
        out = TextureRef()
        if texture is None:
            return out

        texture = self.resolve_texture(texture)
        if texture is None:
            return out

        if texture.content:
            try:
                out.content = bytes(texture.content)
            except MemoryError:
                log(f"WARNING: Could not copy {len(texture.content)} bytes of '{texture.name}' content",
                    category="WARNING", indent=2)
                out.content = None

        path = self.texture_path(texture)
        if path:
            try:
                out.path = str(path)
            except MemoryError:
                log(f"WARNING: Could not copy path of '{texture.name}'", category="WARNING", indent=2)
                out.path = None

        if out.content is not None:
            log(f"- {slot} texture: embedded ({out.content_size} bytes), path '{out.path}'",
                category="TEXTURE", indent=2)
        elif out.path is not None:
            log(f"- {slot} texture: '{out.path}'", category="TEXTURE", indent=2)
        return out

    # --------------------------------------------------------
    # Slot Selection
    # --------------------------------------------------------
    @staticmethod
    def pick_base_color_texture(material):
        return material.pbr.base_color.texture or material.classic.diffuse_color.texture

    @staticmethod
    def pick_normal_texture(material):
        return (material.pbr.normal_map.texture
                or material.classic.normal_map.texture
                or material.classic.bump.texture)

    @staticmethod
    def pick_emissive_texture(material):
        return material.pbr.emission_color.texture or material.classic.emission_color.texture

    @staticmethod
    def pick_uv_texture(material):
        """
        Texture whose UV set and UV transform drive a mesh part's UVs:
        PBR base color > classic diffuse > PBR emission > classic emission.
        """
        if material is None:
            return None
        return (material.pbr.base_color.texture
                or material.classic.diffuse_color.texture
                or material.pbr.emission_color.texture
                or material.classic.emission_color.texture)
