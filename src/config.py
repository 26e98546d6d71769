"""
Runtime constants and asset paths.

Values here are defaults; main.py lets the command line override the ones
that change per run (window size, field of view, assets, camera mode).
"""
import os
from pathlib import Path


def get_asset_path(relative_path: str) -> str:
    """Absolute path of a file under the project's assets directory."""
    # config.py lives in src/, assets/ sits next to it at the project root
    project_root: Path = Path(__file__).resolve().parent.parent
    return os.path.join(str(project_root), "assets", relative_path)


# Window
WIN_WIDTH = 1280
WIN_HEIGHT = 720
TITLE = "Terrain Viewer"
CLEAR_COLOR = (0.4, 0.4, 0.4, 1.0)

# Projection
FOV_DEG = 45.0
Z_NEAR = 0.1
Z_FAR = 100.0

# Camera
START_POSITION = (0.0, 0.0, 3.0)
START_YAW = 0.0
START_PITCH = 0.0
ORBIT_DISTANCE = 3.0
ORBIT_MIN_DISTANCE = 0.5
ORBIT_MAX_DISTANCE = 100.0
BASE_SPEED = 2.5
MOUSE_SENSITIVITY = 0.1
FAST_FACTOR = 2.0
SLOW_FACTOR = 0.5
PITCH_LIMIT = 89.0

# Input
EVENT_QUEUE_SIZE = 256

# Directional light
LIGHT_DIRECTION = (0.0, 1.0, -1.0)
LIGHT_COLOR = (1.0, 1.0, 1.0)

# Assets
DEFAULT_MESH_PATH = get_asset_path("terrain.obj")
DEFAULT_TEXTURE_PATH = get_asset_path("terrain.jpg")
