import sys
import os
import unittest
import numpy as np
from scipy.spatial.transform import Rotation as R

# Add the test directory to the path
test_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if test_dir not in sys.path:
    sys.path.append(test_dir)

from test_base import FBXExporterTestBase
from fbxtiles.fbx_math import (
    matrix_determinant, matrix_for_normals, transform_positions, transform_directions,
    normalize_rows, normalize_vec3, weighted_face_normal, axis_vector, basis_change
)
from fbxtiles.fbx_types import CoordinateAxis


class TestMath(FBXExporterTestBase):
    """Linear algebra helpers used by the partitioner"""

    def test_mirror_determinant_is_negative(self):
        """A single-axis mirror flips the sign of the determinant"""
        self.assertLess(matrix_determinant(self.scale_matrix(-1.0, 1.0, 1.0)), 0.0)
        self.assertAlmostEqual(matrix_determinant(self.scale_matrix(2.0, 3.0, 4.0)), 24.0, delta=1e-9)

    def test_determinant_ignores_translation(self):
        """Only the linear part contributes to the determinant"""
        matrix = np.identity(4)
        matrix[:3, 3] = (10.0, -5.0, 7.0)
        self.assertAlmostEqual(matrix_determinant(matrix), 1.0, delta=1e-9)

    def test_normal_matrix_non_uniform_scale(self):
        """The normal matrix is the inverse-transpose of the linear part"""
        normal_matrix = matrix_for_normals(self.scale_matrix(2.0, 1.0, 1.0))
        self.assertVectorAlmostEqual(normal_matrix, np.diag([0.5, 1.0, 1.0]))

    def test_normal_matrix_rotation_equals_rotation(self):
        """For a pure rotation the normal matrix is the rotation itself"""
        rotation = R.from_euler('xyz', [30.0, 45.0, 10.0], degrees=True).as_matrix()
        matrix = np.identity(4)
        matrix[:3, :3] = rotation
        self.assertVectorAlmostEqual(matrix_for_normals(matrix), rotation, delta=1e-9)

    def test_normal_matrix_singular_transform(self):
        """A flattening transform still yields a usable normal matrix"""
        normal_matrix = matrix_for_normals(self.scale_matrix(1.0, 1.0, 0.0))
        mapped = transform_directions(normal_matrix, [[0.0, 0.0, 1.0]])
        self.assertVectorAlmostEqual(normalize_rows(mapped), [[0.0, 0.0, 1.0]])

    def test_transform_positions_rotation_and_translation(self):
        """Points are rotated, then translated"""
        matrix = np.identity(4)
        matrix[:3, :3] = R.from_euler('z', 90.0, degrees=True).as_matrix()
        matrix[:3, 3] = (1.0, 2.0, 3.0)
        result = transform_positions(matrix, [[1.0, 0.0, 0.0]])
        self.assertVectorAlmostEqual(result, [[1.0, 3.0, 3.0]], delta=1e-9)

    def test_normalize_rows_zero_guard(self):
        """Non-zero rows become unit length; zero rows pass through"""
        result = normalize_rows([[3.0, 4.0, 0.0], [0.0, 0.0, 0.0]])
        self.assertVectorAlmostEqual(result, [[0.6, 0.8, 0.0], [0.0, 0.0, 0.0]])

    def test_normalize_vec3(self):
        """Single vector normalization keeps the zero vector"""
        self.assertVectorAlmostEqual(normalize_vec3([0.0, 0.0, 5.0]), [0.0, 0.0, 1.0])
        self.assertVectorAlmostEqual(normalize_vec3([0.0, 0.0, 0.0]), [0.0, 0.0, 0.0])

    def test_weighted_face_normal_follows_winding(self):
        """A counter-clockwise unit square gives +Z with twice its area"""
        square = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
        self.assertVectorAlmostEqual(weighted_face_normal(square), [0.0, 0.0, 2.0])
        self.assertVectorAlmostEqual(weighted_face_normal(square[::-1]), [0.0, 0.0, -2.0])

    def test_weighted_face_normal_degenerate(self):
        """Fewer than three points give a zero normal"""
        self.assertVectorAlmostEqual(weighted_face_normal([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)]), [0.0, 0.0, 0.0])

    def test_axis_vector(self):
        """Odd axis numbers point the negative way"""
        self.assertVectorAlmostEqual(axis_vector(CoordinateAxis.NEGATIVE_X), [-1.0, 0.0, 0.0])
        self.assertVectorAlmostEqual(axis_vector(CoordinateAxis.POSITIVE_Z), [0.0, 0.0, 1.0])
        self.assertIsNone(axis_vector(6))
        self.assertIsNone(axis_vector(None))

    def test_basis_change_z_up_to_y_up(self):
        """Right +X, up +Z, front -Y maps +Z onto +Y without mirroring"""
        target = (CoordinateAxis.POSITIVE_X, CoordinateAxis.POSITIVE_Y, CoordinateAxis.POSITIVE_Z)
        source = (CoordinateAxis.POSITIVE_X, CoordinateAxis.POSITIVE_Z, CoordinateAxis.NEGATIVE_Y)
        matrix = basis_change(source, target)
        self.assertVectorAlmostEqual(transform_positions(matrix, [[0.0, 0.0, 1.0], [0.0, -1.0, 0.0]]),
                                     [[0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
        self.assertAlmostEqual(matrix_determinant(matrix), 1.0, delta=1e-9)
        self.assertVectorAlmostEqual(basis_change(target, target), np.identity(4))

    def test_basis_change_degenerate_axes(self):
        """Axes repeating a direction give no conversion"""
        target = (CoordinateAxis.POSITIVE_X, CoordinateAxis.POSITIVE_Y, CoordinateAxis.POSITIVE_Z)
        degenerate = (CoordinateAxis.POSITIVE_X, CoordinateAxis.NEGATIVE_X, CoordinateAxis.POSITIVE_Z)
        self.assertIsNone(basis_change(degenerate, target))


if __name__ == '__main__':
    unittest.main()
