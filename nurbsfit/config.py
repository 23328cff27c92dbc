import os
import sys

from loguru import logger


# -------------------------------------------------------------------------------------------------------------------- #
# Package settings (override with environment variables before importing nurbsfit)
# -------------------------------------------------------------------------------------------------------------------- #
# Pivots smaller than this fraction of the largest matrix entry are treated as zero
PIVOT_TOLERANCE = float(os.environ.get("NURBSFIT_PIVOT_TOLERANCE", "1e-12"))

# Default parametric spacing used when tessellating curves and surfaces
DEFAULT_SPACING = 0.05

# Number of uniform samples used to seed the point projection solver
PROJECTION_SAMPLES = 101

# JAX backend used for all computations
JAX_PLATFORM = os.environ.get("NURBSFIT_JAX_PLATFORM", "cpu")

# Logging level enabled at import time (logging stays disabled when unset)
LOG_LEVEL = os.environ.get("NURBSFIT_LOG_LEVEL")


def configure_jax():
    """Select the JAX platform and enable double precision"""
    os.environ.setdefault("JAX_PLATFORM_NAME", JAX_PLATFORM)
    import jax
    jax.config.update("jax_enable_x64", True)


def enable_logging(level="DEBUG", sink=sys.stderr):
    """Enable the log messages of nurbsfit and send them to `sink`

    Returns the identifier of the new loguru handler, which can be passed to
    `disable_logging` to remove it again

    """
    logger.enable("nurbsfit")
    return logger.add(sink, level=level, filter="nurbsfit")


def disable_logging(handler_id=None):
    """Silence the log messages of nurbsfit"""
    if handler_id is not None:
        logger.remove(handler_id)
    logger.disable("nurbsfit")
