import sys, os, math
import argparse
import logging
import glfw
import numpy as np
from OpenGL.GL import *

import config
from camera import CameraController, FreeFlyCamera, OrbitCamera, FREEFLY, ORBIT
from controls import InputQueue, KeyEvent, PointerTracker, Scroll, SwitchMode, ToggleActive
from errors import DegenerateInputError
from logging_config import setup_logging
from obj_loader import OBJModel
from pipeline import TransformPipeline
from scene import Drawable, Mesh, create_cube_mesh, create_grid_mesh, load_texture
from shader import ShaderProgram
from transform import rotation, scaling, translation

logger = logging.getLogger(__name__)

KEY_BINDINGS = {
    glfw.KEY_W: "forward",
    glfw.KEY_S: "backward",
    glfw.KEY_A: "left",
    glfw.KEY_D: "right",
    glfw.KEY_E: "up",
    glfw.KEY_Q: "down",
    glfw.KEY_LEFT_SHIFT: "fast",
    glfw.KEY_LEFT_CONTROL: "slow",
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Textured terrain viewer")
    parser.add_argument("--mesh", default=config.DEFAULT_MESH_PATH, help="OBJ file to display")
    parser.add_argument("--texture", default=config.DEFAULT_TEXTURE_PATH,
                        help="texture image (defaults to the mesh material's map_Kd when missing)")
    parser.add_argument("--camera", choices=(FREEFLY, ORBIT), default=FREEFLY)
    parser.add_argument("--fov", type=float, default=config.FOV_DEG, help="vertical field of view in degrees")
    parser.add_argument("--width", type=int, default=config.WIN_WIDTH)
    parser.add_argument("--height", type=int, default=config.WIN_HEIGHT)
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    parser.add_argument("--log-file", default=None)
    return parser.parse_args(argv)


def make_camera(kind, focus=(0.0, 0.0, 0.0)):
    """Camera of the requested kind; the orbit camera circles ``focus``."""
    if kind == ORBIT:
        return OrbitCamera(offset=-np.asarray(focus, dtype=np.float32))
    return FreeFlyCamera()


def load_terrain(mesh_path, texture_path):
    """Drawable for the terrain OBJ and its bounding-box center, or (None, None)."""
    try:
        model = OBJModel(mesh_path)
    except (OSError, ValueError) as e:
        logger.warning("Could not load %s: %s", mesh_path, e)
        return None, None
    if not os.path.isfile(texture_path or ""):
        texture_path = model.texture_path()
    tex_id = load_texture(texture_path) if texture_path else None
    mesh = Mesh.from_obj(model, texture_id=tex_id)
    logger.info("Terrain mesh: %d vertices", mesh.count)
    return Drawable("Terrain", mesh), model.get_center()


def build_scene(args):
    """Drawables to render and the point the orbit camera should circle."""
    drawables = []
    terrain, focus = load_terrain(args.mesh, args.texture)
    if terrain is not None:
        drawables.append(terrain)
    else:
        # no terrain: textured grid floor instead
        focus = (0.0, 0.0, 0.0)
        floor = Drawable("Floor", create_grid_mesh(40, 20))
        floor.mesh.texture_id = load_texture(args.texture)
        drawables.append(floor)

    # non-uniform scale, so its normals need the inverse-transpose
    marker = Drawable("Marker", create_cube_mesh(1.0),
                      model=translation(0.0, 0.5, -2.0) @ rotation(math.radians(30), (1.0, 1.0, 0.0)) @ scaling(0.5, 1.0, 0.25),
                      material_color=(0.8, 0.3, 0.2))
    drawables.append(marker)
    return drawables, focus


def wait_while_minimized(window):
    width, height = glfw.get_framebuffer_size(window)
    while (width == 0 or height == 0) and not glfw.window_should_close(window):
        glfw.wait_events()
        width, height = glfw.get_framebuffer_size(window)
    return width, height


def install_callbacks(window, events):
    pointer = PointerTracker()

    def key_callback(window, key, scancode, action, mods):
        if action == glfw.PRESS:
            if key == glfw.KEY_ESCAPE:
                glfw.set_window_should_close(window, True)
                return
            if key == glfw.KEY_C:
                events.push(SwitchMode())
                return
        if key in KEY_BINDINGS and action in (glfw.PRESS, glfw.RELEASE):
            events.push(KeyEvent(KEY_BINDINGS[key], action == glfw.PRESS))

    def mouse_button_callback(window, button, action, mods):
        if button == glfw.MOUSE_BUTTON_RIGHT and action == glfw.PRESS:
            pointer.reset()
            events.push(ToggleActive())

    def cursor_callback(window, xpos, ypos):
        motion = pointer.delta(xpos, ypos)
        if motion is not None:
            events.push(motion)

    def scroll_callback(window, xoffset, yoffset):
        events.push(Scroll(yoffset))

    glfw.set_key_callback(window, key_callback)
    glfw.set_mouse_button_callback(window, mouse_button_callback)
    glfw.set_cursor_pos_callback(window, cursor_callback)
    glfw.set_scroll_callback(window, scroll_callback)


def run(args):
    glfw.set_error_callback(lambda code, desc: logger.error("GLFW error: %s (%d)", desc, code))
    if not glfw.init():
        logger.error("glfw.init() failed")
        return 1

    try:
        glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
        glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
        glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
        glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, True)
        glfw.window_hint(glfw.DEPTH_BITS, 24)

        window = glfw.create_window(args.width, args.height, config.TITLE, None, None)
        if not window:
            logger.error("glfw.create_window() failed")
            return 1

        glfw.make_context_current(window)
        glfw.swap_interval(1)

        for name, enum in (("RENDERER", GL_RENDERER), ("VENDOR", GL_VENDOR), ("VERSION", GL_VERSION)):
            logger.info("%s %s", name, glGetString(enum).decode(errors="replace"))

        shader = ShaderProgram()
        drawables, focus = build_scene(args)

        def on_active_changed(active):
            glfw.set_input_mode(window, glfw.CURSOR, glfw.CURSOR_DISABLED if active else glfw.CURSOR_NORMAL)

        controller = CameraController(make_camera(args.camera, focus), on_active_changed=on_active_changed)
        events = InputQueue()
        install_callbacks(window, events)
        pipeline = TransformPipeline(math.radians(args.fov), config.Z_NEAR, config.Z_FAR)

        glClearColor(*config.CLEAR_COLOR)
        glEnable(GL_DEPTH_TEST)

        last_time = glfw.get_time()
        while not glfw.window_should_close(window):
            glfw.poll_events()
            width, height = wait_while_minimized(window)
            if width == 0 or height == 0:
                break

            t = glfw.get_time()
            dt = max(0.0, t - last_time)
            last_time = t

            glViewport(0, 0, width, height)
            pipeline.set_viewport(width, height)

            events.drain(controller)
            controller.update(dt)
            frame = pipeline.begin_frame(controller)

            glClear(GL_COLOR_BUFFER_BIT | GL_DEPTH_BUFFER_BIT)
            shader.use()
            shader.set_light(config.LIGHT_DIRECTION, config.LIGHT_COLOR)
            for d in drawables:
                try:
                    transforms = pipeline.object_transforms(frame, d.model)
                except DegenerateInputError as e:
                    logger.warning("Skipping %s: %s", d.name, e)
                    continue
                d.draw(shader, transforms)

            glfw.swap_buffers(window)

        for d in drawables:
            d.mesh.destroy()
        shader.destroy()
        return 0
    finally:
        glfw.terminate()


def main(argv=None):
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else logging.INFO, args.log_file)
    try:
        return run(args)
    except Exception:
        logger.exception("Top-level exception")
        return 1


if __name__ == "__main__":
    sys.exit(main())
