# ================================================================
# LOGGING UTILITY
# ================================================================
# Centralized logging for the FBX flattening stage.
# Provides a single `log()` function for unified formatting,
# indentation, and ANSI coloring across modules.
# ================================================================

# --------------------------------------------------------
# Imports
# --------------------------------------------------------
from .fbx_types import GREEN, YELLOW, BLUE, RED, MAGENTA, CYAN, RESET, BOLD

# --------------------------------------------------------
# Logging Function
# --------------------------------------------------------
def log(message: str, category: str = "", indent: int = 0):
    """
    Print a formatted log message with ANSI color and indentation based on entity category.

    Args:
        message (str): The message to log.
        category (str): Entity category or warning type. One of:
            "LOADER"   - Scene loading (yellow)
            "MESH"     - Mesh partitioning (green)
            "NODE"     - Generic node operations (blue)
            "MATERIAL" - Material normalization (magenta)
            "TEXTURE"  - Texture resolution (cyan)
            "WARNING"  - Warning messages (red)
            "ERROR"    - Error messages (red)
            ""         - No tag, no color (plain output)
        indent (int): Number of indentation levels to apply.
    """

    # If no category is provided, print plain text
    if not category:
        print("  " * indent + message)
        return

    color_map = {
        "LOADER": YELLOW,
        "MESH": GREEN,
        "NODE": BLUE,
        "MATERIAL": MAGENTA,
        "TEXTURE": CYAN,
        "WARNING": RED,
        "ERROR": RED
    }
    color = color_map.get(category.upper(), BLUE)

    indent_str = "  " * indent

    print(f"{BOLD}{color}[{category.upper()}]{RESET} {indent_str}{message}")
