from ._default import GPU_RUNTIME_ENV, get_default_runtime
from ._gl_runtime import GLProgram, GLRuntime, GLTexture
from ._program import ShaderProgram, register_kernel
from ._runtime import MAX_TEXTURE_SIZE, TextureRuntime, load_shader
from ._texture import Texture

__all__ = [
    "GPU_RUNTIME_ENV",
    "MAX_TEXTURE_SIZE",
    GLProgram.__name__,
    GLRuntime.__name__,
    GLTexture.__name__,
    ShaderProgram.__name__,
    Texture.__name__,
    TextureRuntime.__name__,
    get_default_runtime.__name__,
    load_shader.__name__,
    register_kernel.__name__,
]
