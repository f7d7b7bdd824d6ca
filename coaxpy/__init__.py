import logging

from .baked import BakedCoaxialOperator, BakedOperator, BakedRotationOperator
from .coaxial import CoaxialTranslation
from .config import Config
from .rotation import RotationCoefficients

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
