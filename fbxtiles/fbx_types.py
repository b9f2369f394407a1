# ================================================================
# FBX TYPES
# ================================================================
# Defines constants, enumerations, and default values shared by the
# loader, the material normalizer, the mesh partitioner and the
# export aggregator.
#
# Centralizes shared types to avoid duplication and ensure
# consistent maintenance of the codebase.
# ================================================================


# --------------------------------------------------------
# Texture Type Enumeration
# --------------------------------------------------------
class TextureType:
    """
    Kinds of texture found in the source scene.
    Only FILE textures carry content; the others wrap further textures.
    """
    FILE = 0           # Leaf texture (content and/or file path)
    LAYERED = 1        # Ordered stack of sub-textures
    SHADER = 2         # Shader wrapping a main texture


# --------------------------------------------------------
# Coordinate Axes
# --------------------------------------------------------
class CoordinateAxis:
    """
    Axis directions, numbered the way the scene library numbers them.
    """
    POSITIVE_X = 0
    NEGATIVE_X = 1
    POSITIVE_Y = 2
    NEGATIVE_Y = 3
    POSITIVE_Z = 4
    NEGATIVE_Z = 5
    UNKNOWN = 6


# --------------------------------------------------------
# Load Configuration Constants
# --------------------------------------------------------
TARGET_RIGHT_AXIS = CoordinateAxis.POSITIVE_X
TARGET_UP_AXIS = CoordinateAxis.POSITIVE_Y
TARGET_FRONT_AXIS = CoordinateAxis.POSITIVE_Z
TARGET_UNIT_METERS = 1.0
FBX_DEFAULT_UNIT_METERS = 0.01      # FBX files are authored in centimeters by default
ERROR_MESSAGE_LIMIT = 1024          # Upper bound for load diagnostics

# --------------------------------------------------------
# Texture Resolution
# --------------------------------------------------------
MAX_TEXTURE_DEPTH = 8               # Layered/shader unwraps before giving up
EMBEDDED_TEXTURE_PREFIX = "*"       # Parser reference to an embedded texture

# --------------------------------------------------------
# Default Material Values
# --------------------------------------------------------
DEFAULT_BASE_COLOR = (1.0, 1.0, 1.0)  # Default base color
DEFAULT_ALPHA = 1.0                   # Default alpha
DEFAULT_BASE_FACTOR = 1.0             # Default base color factor
DEFAULT_EMISSION = (0.0, 0.0, 0.0)    # Default emission color
DEFAULT_EMISSION_FACTOR = 1.0         # Default emission factor
DEFAULT_METALLIC = 0.0                # Default metallic value
DEFAULT_ROUGHNESS = 1.0               # Default roughness

# --------------------------------------------------------
# Default Vertex Attributes
# --------------------------------------------------------
DEFAULT_UV = (0.0, 0.0)
DEFAULT_COLOR = (1.0, 1.0, 1.0, 1.0)  # Opaque white

# --------------------------------------------------------
# ANSI Color Codes for Logging
# --------------------------------------------------------
GREEN = '\033[92m'     # Color for mesh elements
YELLOW = '\033[93m'    # Color for the loader
BLUE = '\033[94m'      # Color for generic nodes
RED = '\033[91m'       # Color for warnings/errors
MAGENTA = '\033[95m'   # Color for materials
CYAN = '\033[96m'      # Color for textures
RESET = '\033[0m'      # Reset ANSI color
BOLD = '\033[1m'       # Bold text
