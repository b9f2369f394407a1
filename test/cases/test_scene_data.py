import sys
import os
import unittest
from unittest import mock
import numpy as np

# Add the test directory to the path
test_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if test_dir not in sys.path:
    sys.path.append(test_dir)

from test_base import FBXExporterTestBase
from test_utils import captured_output
from fbxtiles.fbx_types import CoordinateAxis
from fbxtiles.fbx_export_nodes import TextureRef, ExportScene
from fbxtiles.fbx_scene_nodes import SourceTexture, MaterialMap, MaterialPart
from fbxtiles.fbx_loader import SceneLoadError
from fbxtiles.fbx_scene_data import (
    AxisDir, EmbeddedTexture, FileTexture, texture_source, load_scene, flip_v
)


class TestSceneData(FBXExporterTestBase):
    """Detached scene view for downstream writers"""

    def test_axis_from_number(self):
        """Axis numbers map to directions; unknown numbers map to UNKNOWN"""
        self.assertEqual(AxisDir.from_axis(CoordinateAxis.POSITIVE_X), AxisDir.POS_X)
        self.assertEqual(AxisDir.from_axis(1), AxisDir.NEG_X)
        self.assertEqual(AxisDir.from_axis(2), AxisDir.POS_Y)
        self.assertEqual(AxisDir.from_axis(5), AxisDir.NEG_Z)
        self.assertEqual(AxisDir.from_axis(CoordinateAxis.UNKNOWN), AxisDir.UNKNOWN)
        self.assertEqual(AxisDir.from_axis(42), AxisDir.UNKNOWN)

    def test_texture_source_kinds(self):
        """Embedded bytes win over paths; relative paths join the FBX directory"""
        base_dir = os.path.join(os.sep, "data", "models")

        embedded = texture_source(TextureRef(content=b"PNG", path="inner.png"), base_dir)
        self.assertIsInstance(embedded, EmbeddedTexture)
        self.assertEqual(embedded.data, b"PNG")
        self.assertEqual(embedded.name, "inner.png")

        relative = texture_source(TextureRef(path="tex/a.png"), base_dir)
        self.assertIsInstance(relative, FileTexture)
        self.assertEqual(relative.path, os.path.join(base_dir, "tex/a.png"))

        absolute_path = os.path.join(os.sep, "textures", "b.png")
        self.assertEqual(texture_source(TextureRef(path=absolute_path), base_dir).path, absolute_path)

        self.assertIsNone(texture_source(TextureRef(), base_dir))

    def test_load_failure(self):
        """Load failures carry the diagnostic"""
        with mock.patch("fbxtiles.fbx_scene_data.export_scene_from_file", return_value=(None, "bad file")):
            with self.assertRaises(SceneLoadError) as ctx:
                load_scene("broken.fbx")
        self.assertEqual(str(ctx.exception), "FBX load failed: bad file")

    def test_scene_without_parts(self):
        """A scene with no mesh parts is rejected"""
        empty = ExportScene(materials=[], parts=[])
        with mock.patch("fbxtiles.fbx_scene_data.export_scene_from_file", return_value=(empty, None)):
            with self.assertRaises(SceneLoadError) as ctx:
                load_scene("empty.fbx")
        self.assertEqual(str(ctx.exception), "no mesh data found in FBX")

    def test_load_scene_copies_and_releases(self):
        """The scene data is detached from the released export scene"""
        albedo = SourceTexture(name="albedo", relative_filename="albedo.png")
        material = self.make_material("A", classic={"diffuse_color": MaterialMap((1.0, 0.0, 0.0), albedo)})
        mesh = self.make_quad_mesh(uvs=[(0.0, 0.25)] * 4,
                                   material_parts=[MaterialPart(0, [0])], materials=[material])
        export = self.flatten(self.make_scene([self.make_node(mesh, name="Quad")], materials=[material]))

        fbx_path = os.path.join(os.sep, "data", "scene.fbx")
        with mock.patch("fbxtiles.fbx_scene_data.export_scene_from_file", return_value=(export, None)):
            with captured_output():
                data = load_scene(fbx_path)

        self.assertEqual(export.part_count, 0)
        self.assertEqual(data.right_axis, AxisDir.POS_X)
        self.assertEqual(data.up_axis, AxisDir.POS_Y)

        self.assertEqual(len(data.materials), 1)
        scene_material = data.materials[0]
        self.assertEqual(scene_material.name, "A")
        self.assertVectorAlmostEqual(scene_material.base_color, (1.0, 0.0, 0.0, 1.0))
        self.assertEqual(scene_material.base_color_texture.path,
                         os.path.join(os.path.dirname(os.path.abspath(fbx_path)), "albedo.png"))
        self.assertIsNone(scene_material.normal_texture)

        part = data.parts[0]
        self.assertEqual(part.name, "Quad")
        self.assertEqual(part.vertex_count, 6)
        self.assertEqual(part.positions.shape, (6, 3))
        self.assertVectorAlmostEqual(part.uvs, np.tile([0.0, 0.75], (6, 1)))

    def test_flip_v_in_place(self):
        """flip_v turns v into 1 - v on every part"""
        mesh = self.make_quad_mesh(uvs=[(0.5, 0.1)] * 4)
        export = self.flatten(self.make_scene([self.make_node(mesh)]))
        with mock.patch("fbxtiles.fbx_scene_data.export_scene_from_file", return_value=(export, None)):
            with captured_output():
                data = load_scene("quad.fbx")

        self.assertIs(flip_v(data), data)
        self.assertVectorAlmostEqual(data.parts[0].uvs, np.tile([0.5, 0.1], (6, 1)))

    def test_empty_part_copies_as_empty_arrays(self):
        """Parts without geometry copy to zero-length arrays"""
        mesh = self.make_mesh([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)], [2])
        export = self.flatten(self.make_scene([self.make_node(mesh)]))
        with mock.patch("fbxtiles.fbx_scene_data.export_scene_from_file", return_value=(export, None)):
            with captured_output():
                data = load_scene("line.fbx")
        self.assertEqual(data.parts[0].vertex_count, 0)
        self.assertEqual(data.parts[0].uvs.shape, (0, 2))


if __name__ == '__main__':
    unittest.main()
