import sys
import os
import math
import unittest

# Add the test directory to the path
test_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if test_dir not in sys.path:
    sys.path.append(test_dir)

from test_base import FBXExporterTestBase
from test_utils import captured_output
from fbxtiles.fbx_types import TextureType
from fbxtiles.fbx_scene_nodes import SourceTexture, MaterialMap
from fbxtiles.fbx_material_factory import MaterialFactory


class TestMaterialFactory(FBXExporterTestBase):
    """Material normalization into a single PBR description"""

    def create(self, material):
        with captured_output():
            return MaterialFactory.create(material)

    def test_missing_material_gives_default(self):
        """No material gives white, opaque, non-metallic, fully rough, untextured"""
        info = self.create(None)
        self.assertIsNone(info.name)
        self.assertEqual(info.base_color, (1.0, 1.0, 1.0, 1.0))
        self.assertEqual(info.emissive, (0.0, 0.0, 0.0))
        self.assertEqual(info.metallic, 0.0)
        self.assertEqual(info.roughness, 1.0)
        self.assertFalse(info.double_sided)
        for texture in info.textures():
            self.assertTrue(texture.is_empty)

    def test_classic_red_ignores_unrelated_pbr_texture(self):
        """Classic red diffuse stays classic even with an unrelated PBR texture bound"""
        glow = SourceTexture(name="glow", type=TextureType.FILE, filename="glow.png")
        material = self.make_material(
            name="Red",
            classic={"diffuse_color": (1.0, 0.0, 0.0)},
            pbr={"emission_color": MaterialMap(None, glow)},
        )
        self.assertFalse(MaterialFactory.uses_pbr(material))

        info = self.create(material)
        self.assertVectorAlmostEqual(info.base_color, (1.0, 0.0, 0.0, 1.0))
        self.assertEqual(info.roughness, 1.0)
        self.assertEqual(info.metallic, 0.0)
        self.assertEqual(info.name, "Red")

    def test_pbr_base_color_and_factor(self):
        """PBR base color is multiplied by its factor; alpha comes from classic transparency"""
        material = self.make_material(
            classic={"diffuse_color": (0.0, 1.0, 0.0), "transparency_factor": 0.25},
            pbr={"base_color": (0.5, 0.5, 0.5), "base_factor": 0.5},
        )
        info = self.create(material)
        self.assertVectorAlmostEqual(info.base_color, (0.25, 0.25, 0.25, 0.75))

    def test_pbr_enabled_flag_selects_pbr(self):
        """An enabled PBR description wins even without explicit base values"""
        material = self.make_material(classic={"diffuse_color": (1.0, 0.0, 0.0)}, pbr_enabled=True)
        info = self.create(material)
        self.assertVectorAlmostEqual(info.base_color, (1.0, 1.0, 1.0, 1.0))

    def test_pbr_base_texture_selects_pbr(self):
        """A bound PBR base color texture counts as explicit"""
        albedo = SourceTexture(name="albedo", type=TextureType.FILE, filename="albedo.png")
        material = self.make_material(pbr={"base_color": MaterialMap(None, albedo)})
        self.assertTrue(MaterialFactory.uses_pbr(material))
        info = self.create(material)
        self.assertEqual(info.base_color_texture.path, "albedo.png")

    def test_classic_diffuse_factor(self):
        """Classic diffuse color is scaled by the diffuse factor"""
        material = self.make_material(classic={"diffuse_color": (0.8, 0.6, 0.4), "diffuse_factor": 0.5})
        info = self.create(material)
        self.assertVectorAlmostEqual(info.base_color, (0.4, 0.3, 0.2, 1.0))

    def test_transparency_alpha_is_clamped(self):
        """Alpha stays within 0..1"""
        material = self.make_material(classic={"transparency_factor": 1.5})
        self.assertEqual(self.create(material).base_color[3], 0.0)
        material = self.make_material(classic={"transparency_factor": -0.5})
        self.assertEqual(self.create(material).base_color[3], 1.0)

    def test_roughness_chain(self):
        """Roughness > 1 - glossiness > specular exponent > default"""
        material = self.make_material(pbr={"roughness": 0.2, "glossiness": 0.9},
                                      classic={"specular_exponent": 98.0})
        self.assertAlmostEqual(self.create(material).roughness, 0.2)

        material = self.make_material(pbr={"glossiness": 0.3}, classic={"specular_exponent": 98.0})
        self.assertAlmostEqual(self.create(material).roughness, 0.7)

        material = self.make_material(classic={"specular_exponent": 98.0})
        self.assertAlmostEqual(self.create(material).roughness, math.sqrt(2.0 / 100.0))

        self.assertEqual(self.create(self.make_material()).roughness, 1.0)

    def test_metallic_and_roughness_are_clamped(self):
        """Out-of-range scalars are clamped to 0..1"""
        material = self.make_material(pbr={"metalness": 1.5, "roughness": -0.3})
        info = self.create(material)
        self.assertEqual(info.metallic, 1.0)
        self.assertEqual(info.roughness, 0.0)

    def test_pbr_emission_wins_over_classic(self):
        """The first shading model with emission wins, never blended"""
        material = self.make_material(
            classic={"emission_color": (0.0, 1.0, 0.0)},
            pbr={"emission_color": (1.0, 0.0, 0.0), "emission_factor": 2.0},
        )
        self.assertVectorAlmostEqual(self.create(material).emissive, (2.0, 0.0, 0.0))

    def test_classic_emission(self):
        """Classic emission is used when the PBR description has none"""
        material = self.make_material(classic={"emission_color": (0.0, 0.5, 0.0), "emission_factor": 2.0})
        self.assertVectorAlmostEqual(self.create(material).emissive, (0.0, 1.0, 0.0))

    def test_double_sided_flag(self):
        """The double-sided flag is carried over"""
        self.assertTrue(self.create(self.make_material(double_sided=True)).double_sided)

    def test_texture_slots_fall_back_to_classic(self):
        """Each slot prefers the PBR texture, then the classic equivalent"""
        diffuse = SourceTexture(name="diffuse", filename="diffuse.png")
        bump = SourceTexture(name="bump", filename="bump.png")
        emission = SourceTexture(name="emission", content=b"EMIT")
        material = self.make_material(classic={
            "diffuse_color": MaterialMap((1.0, 1.0, 1.0), diffuse),
            "bump": MaterialMap(None, bump),
            "emission_color": MaterialMap(None, emission),
        })
        info = self.create(material)
        self.assertEqual(info.base_color_texture.path, "diffuse.png")
        self.assertEqual(info.normal_texture.path, "bump.png")
        self.assertEqual(info.emissive_texture.content, b"EMIT")
        self.assertIsNone(info.emissive_texture.path)

    def test_same_material_twice_is_identical(self):
        """Normalization is a pure function of the source material"""
        texture = SourceTexture(name="t", filename="t.png")
        material = self.make_material(
            classic={"diffuse_color": MaterialMap((0.2, 0.4, 0.6), texture), "specular_exponent": 20.0},
            pbr={"metalness": 0.3},
        )
        first = self.create(material)
        second = self.create(material)
        self.assertEqual(first.base_color, second.base_color)
        self.assertEqual(first.emissive, second.emissive)
        self.assertEqual(first.metallic, second.metallic)
        self.assertEqual(first.roughness, second.roughness)
        self.assertEqual(first.base_color_texture.path, second.base_color_texture.path)


if __name__ == '__main__':
    unittest.main()
