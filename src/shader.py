import logging
import numpy as np
from OpenGL.GL import *

from vecmath import normalize

logger = logging.getLogger(__name__)

# Vertex Shader
VS = r"""
#version 330 core
layout(location=0) in vec3 aPos;
layout(location=1) in vec3 aNormal;
layout(location=2) in vec2 aTexCoord;

uniform mat4 uPVM;
uniform mat4 uM;
uniform mat3 uN;

out vec3 fN;
out vec3 fPosW;
out vec2 fTexCoord;

void main(){
    fPosW = (uM * vec4(aPos, 1.0)).xyz;
    fN = normalize(uN * aNormal);
    fTexCoord = aTexCoord;
    gl_Position = uPVM * vec4(aPos, 1.0);
}
"""

# Fragment Shader
FS = r"""
#version 330 core
in vec3 fN;
in vec3 fPosW;
in vec2 fTexCoord;

out vec4 fragColor;

uniform vec3 uLightDir;
uniform vec3 uLightColor;
uniform vec3 uMaterialColor;

uniform sampler2D uTexture;
uniform bool uHasTexture;

void main(){
    vec3 albedo = uMaterialColor;
    if (uHasTexture)
        albedo = texture(uTexture, fTexCoord).rgb;

    vec3 ambient = 0.1 * uLightColor;
    float diff = max(dot(normalize(fN), normalize(uLightDir)), 0.0);
    vec3 diffuse = diff * uLightColor;

    fragColor = vec4((ambient + diffuse) * albedo, 1.0);
}
"""

UNIFORMS = (
    "uPVM", "uM", "uN",
    "uLightDir", "uLightColor", "uMaterialColor",
    "uTexture", "uHasTexture",
)


class ShaderProgram:
    def __init__(self):
        self.prog = glCreateProgram()
        vs = self._compile(VS, GL_VERTEX_SHADER)
        fs = self._compile(FS, GL_FRAGMENT_SHADER)
        glAttachShader(self.prog, vs); glAttachShader(self.prog, fs)
        glLinkProgram(self.prog)
        glDeleteShader(vs); glDeleteShader(fs)

        if not glGetProgramiv(self.prog, GL_LINK_STATUS):
            raise RuntimeError(glGetProgramInfoLog(self.prog).decode())

        self.loc = {name: glGetUniformLocation(self.prog, name) for name in UNIFORMS}
        logger.debug("shader program %s linked", self.prog)

    def _compile(self, src, kind):
        sh = glCreateShader(kind)
        glShaderSource(sh, src)
        glCompileShader(sh)
        if not glGetShaderiv(sh, GL_COMPILE_STATUS):
            log = glGetShaderInfoLog(sh).decode()
            glDeleteShader(sh)
            raise RuntimeError(f"shader compile failed: {log}")
        return sh

    def use(self):
        glUseProgram(self.prog)

    def set_transform_uniforms(self, pvm, model, normal):
        # row-major numpy matrices: always upload with transpose
        glUniformMatrix4fv(self.loc["uPVM"], 1, GL_TRUE, np.ascontiguousarray(pvm, dtype=np.float32))
        glUniformMatrix4fv(self.loc["uM"], 1, GL_TRUE, np.ascontiguousarray(model, dtype=np.float32))
        glUniformMatrix3fv(self.loc["uN"], 1, GL_TRUE, np.ascontiguousarray(normal, dtype=np.float32))

    def set_light(self, direction, color):
        glUniform3fv(self.loc["uLightDir"], 1, normalize(direction))
        glUniform3fv(self.loc["uLightColor"], 1, np.array(color, dtype=np.float32))

    def set_material(self, color, texture_id=None):
        glUniform3fv(self.loc["uMaterialColor"], 1, np.array(color, dtype=np.float32))

        if texture_id is not None:
            glUniform1i(self.loc["uHasTexture"], 1)
            glActiveTexture(GL_TEXTURE0)
            glBindTexture(GL_TEXTURE_2D, texture_id)
            glUniform1i(self.loc["uTexture"], 0)
        else:
            glUniform1i(self.loc["uHasTexture"], 0)

    def destroy(self):
        glDeleteProgram(self.prog)
