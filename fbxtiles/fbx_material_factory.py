# ================================================================
#  MATERIAL FACTORY
# ================================================================
# This module defines the MaterialFactory class, responsible for
# collapsing a source material's classic and PBR descriptions into
# one MaterialInfo: base color with alpha, emission, metallic,
# roughness, double-sidedness and three texture slots.
# ================================================================

# --------------------------------------------------------
# IMPORTS
# --------------------------------------------------------
import math

from .fbx_types import (
    DEFAULT_BASE_COLOR, DEFAULT_BASE_FACTOR, DEFAULT_ALPHA, DEFAULT_EMISSION,
    DEFAULT_EMISSION_FACTOR, DEFAULT_METALLIC, DEFAULT_ROUGHNESS
)
from .fbx_export_nodes import MaterialInfo
from .fbx_texture_manager import FBXTextureManager
from .fbx_log import log


def clamp01(value):
    return max(0.0, min(1.0, value))


# --------------------------------------------------------
# Material Factory
# --------------------------------------------------------
class MaterialFactory:
    """
    MaterialFactory converts a SourceMaterial into a MaterialInfo.

    One shading model is selected per material and never blended with the
    other, except for alpha, which always comes from the classic
    transparency factor.
    """

    @staticmethod
    def create_default():
        return MaterialInfo.create_default()

    @staticmethod
    def uses_pbr(material):
        """PBR wins when enabled or when its base color carries anything explicit."""
        pbr = material.pbr
        return (material.pbr_enabled
                or pbr.base_color.has_value
                or pbr.base_factor.has_value
                or pbr.base_color.texture is not None)

    @staticmethod
    def base_color(material, use_pbr):
        if use_pbr:
            color = material.pbr.base_color.vec3(DEFAULT_BASE_COLOR)
            factor = material.pbr.base_factor.real(DEFAULT_BASE_FACTOR)
        else:
            color = material.classic.diffuse_color.vec3(DEFAULT_BASE_COLOR)
            factor = material.classic.diffuse_factor.real(DEFAULT_BASE_FACTOR)

        alpha = DEFAULT_ALPHA
        if material.classic.transparency_factor.has_value:
            alpha = clamp01(1.0 - material.classic.transparency_factor.real(0.0))

        return (color[0] * factor, color[1] * factor, color[2] * factor, alpha)

    @staticmethod
    def roughness(material):
        pbr = material.pbr
        if pbr.roughness.has_value:
            return pbr.roughness.real(DEFAULT_ROUGHNESS)
        if pbr.glossiness.has_value:
            return 1.0 - pbr.glossiness.real(0.0)
        if material.classic.specular_exponent.has_value:
            shininess = material.classic.specular_exponent.real(0.0)
            # Blinn-Phong exponent to roughness; negative exponents clamp to rough
            if shininess + 2.0 <= 0.0:
                return DEFAULT_ROUGHNESS
            return math.sqrt(2.0 / (shininess + 2.0))
        return DEFAULT_ROUGHNESS

    @staticmethod
    def emissive(material):
        for maps in (material.pbr, material.classic):
            if maps.emission_color.has_value or maps.emission_factor.has_value:
                color = maps.emission_color.vec3(DEFAULT_EMISSION)
                factor = maps.emission_factor.real(DEFAULT_EMISSION_FACTOR)
                return (color[0] * factor, color[1] * factor, color[2] * factor)
        return DEFAULT_EMISSION

    @staticmethod
    def create(material, texture_manager=None):
        """
        Normalizes one source material.

        Args:
            material (SourceMaterial): Source material, or None
            texture_manager (FBXTextureManager): Shared resolver, created if missing

        Returns:
            MaterialInfo: The normalized material
        """
        if material is None:
            log("- No source material, using default values", category="MATERIAL", indent=2)
            return MaterialFactory.create_default()

        if texture_manager is None:
            texture_manager = FBXTextureManager()

        log(f"[MaterialFactory] Processing material: '{material.name}'", category="MATERIAL", indent=1)

        use_pbr = MaterialFactory.uses_pbr(material)
        log(f"- Shading model: {'PBR' if use_pbr else 'classic'}", category="MATERIAL", indent=2)

        info = MaterialInfo(name=str(material.name) if material.name else None)
        info.base_color = MaterialFactory.base_color(material, use_pbr)

        metallic = DEFAULT_METALLIC
        if material.pbr.metalness.has_value:
            metallic = material.pbr.metalness.real(DEFAULT_METALLIC)
        info.metallic = clamp01(metallic)
        info.roughness = clamp01(MaterialFactory.roughness(material))
        info.emissive = MaterialFactory.emissive(material)
        info.double_sided = bool(material.double_sided)

        r, g, b, a = info.base_color
        log(f"- Base Color: ({r:.3f}, {g:.3f}, {b:.3f}), Alpha: {a:.3f}", category="MATERIAL", indent=2)
        log(f"- Metallic: {info.metallic:.3f}, Roughness: {info.roughness:.3f}", category="MATERIAL", indent=2)
        if any(info.emissive):
            er, eg, eb = info.emissive
            log(f"- Emission: ({er:.3f}, {eg:.3f}, {eb:.3f})", category="MATERIAL", indent=2)

        info.base_color_texture = texture_manager.fill_texture_ref(
            texture_manager.pick_base_color_texture(material), slot="Base color")
        info.normal_texture = texture_manager.fill_texture_ref(
            texture_manager.pick_normal_texture(material), slot="Normal")
        info.emissive_texture = texture_manager.fill_texture_ref(
            texture_manager.pick_emissive_texture(material), slot="Emissive")

        log(f"[MaterialFactory] Completed: '{material.name}'", category="MATERIAL", indent=1)
        return info
