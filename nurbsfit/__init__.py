from . import config
config.configure_jax()

from loguru import logger

# Import fitting and geometry modules
from .errors                import *
from .dense_matrix          import *
from .parameterization      import *
from .knot_vectors          import *
from .nurbs_basis_functions import *
from .interpolation         import *
from .tessellation          import *
from .nurbs_curve           import *
from .nurbs_surface         import *
from .fitting               import *

from .config import enable_logging, disable_logging

# Package info
__version__ = "0.1.0"
PACKAGE_NAME = "nurbsfit"

# Library logging stays silent unless requested
logger.disable(PACKAGE_NAME)
if config.LOG_LEVEL:
    enable_logging(config.LOG_LEVEL)
