# ================================================================
#  FBX MATH UTILS
# ================================================================
# This module provides pure numpy helpers used by the loader and
# the partitioner:
#   - matrix_determinant: Handedness test for a node transform.
#   - matrix_for_normals: Inverse-transpose of the linear part.
#   - transform_positions / transform_directions: Batched transforms.
#   - normalize_rows / normalize_vec3: Length normalization with a
#     zero-length guard.
#   - weighted_face_normal: Area-weighted polygon normal from
#     untransformed corner positions.
#   - axis_vector / basis_change: Axis-convention conversion.
#
# All matrices are 4x4 affine, column-vector convention
# (translation in the last column).
# ================================================================

# --------------------------------------------------------
# IMPORTS
# --------------------------------------------------------
import numpy as np


def linear_part(matrix):
    return np.asarray(matrix, dtype=np.float64)[:3, :3]


def matrix_determinant(matrix) -> float:
    """Determinant of the 3x3 linear part; negative for mirroring transforms."""
    return float(np.linalg.det(linear_part(matrix)))


def matrix_for_normals(matrix):
    """
    Returns the 3x3 matrix that maps normals: the inverse-transpose of the
    linear part. For a singular transform the cofactor matrix is used,
    which has the same directions up to scale.
    """
    m = linear_part(matrix)
    try:
        return np.linalg.inv(m).T
    except np.linalg.LinAlgError:
        c0, c1, c2 = m[:, 0], m[:, 1], m[:, 2]
        return np.column_stack((np.cross(c1, c2), np.cross(c2, c0), np.cross(c0, c1)))


def transform_positions(matrix, points):
    """Apply an affine 4x4 transform to an (n, 3) array of points."""
    m = np.asarray(matrix, dtype=np.float64)
    points = np.asarray(points, dtype=np.float64)
    return points @ m[:3, :3].T + m[:3, 3]


def transform_directions(matrix3, directions):
    """Apply a 3x3 linear map to an (n, 3) array of directions."""
    return np.asarray(directions, dtype=np.float64) @ np.asarray(matrix3, dtype=np.float64).T


def normalize_rows(vectors):
    """Normalize each row; rows with length <= 0 are left unchanged."""
    vectors = np.array(vectors, dtype=np.float64)
    lengths = np.linalg.norm(vectors, axis=1)
    valid = lengths > 0.0
    vectors[valid] /= lengths[valid, None]
    return vectors


def normalize_vec3(vector):
    vector = np.asarray(vector, dtype=np.float64)
    length = float(np.linalg.norm(vector))
    if length <= 0.0:
        return vector
    return vector / length


def weighted_face_normal(points):
    """
    Sum of the fan triangles' cross products over a polygon's (n, 3) corner
    positions: a normal whose length is twice the polygon area, following
    the face winding.
    """
    points = np.asarray(points, dtype=np.float64)
    normal = np.zeros(3, dtype=np.float64)
    if len(points) < 3:
        return normal

    origin = points[0]
    for i in range(1, len(points) - 1):
        normal += np.cross(points[i] - origin, points[i + 1] - origin)
    return normal


def axis_vector(axis):
    """
    Unit vector of a CoordinateAxis number: axis // 2 selects X, Y or Z,
    an odd number points the negative way. None for anything else.
    """
    if axis is None or not 0 <= axis < 6:
        return None
    vector = np.zeros(3, dtype=np.float64)
    vector[axis // 2] = -1.0 if axis % 2 else 1.0
    return vector


def basis_change(source_axes, target_axes):
    """
    4x4 matrix taking the (right, up, front) axes of a file onto the target
    (right, up, front) axes. Returns None when either triple does not span
    all three directions.
    """
    source = [axis_vector(axis) for axis in source_axes]
    target = [axis_vector(axis) for axis in target_axes]
    if any(v is None for v in source + target):
        return None

    source = np.column_stack(source)
    target = np.column_stack(target)
    if abs(np.linalg.det(source)) < 0.5 or abs(np.linalg.det(target)) < 0.5:
        return None

    # Signed permutations: the inverse is the transpose
    matrix = np.identity(4)
    matrix[:3, :3] = target @ source.T
    return matrix
