"""
smartfit - fit arbitrary images to a display resolution, keeping faces and salient content in frame.
"""

from smartfit.config import FitConfig
from smartfit.config import FitMode
from smartfit.face_detector import FaceCandidate
from smartfit.face_detector import FaceDetector
from smartfit.fit_engine import SmartFitEngine
from smartfit.fit_engine import SmartFitError
from smartfit.fit_engine import InvalidImageError
from smartfit.fit_engine import IncompatibleAspectError
from smartfit.fit_engine import IncompatibleResolutionError
from smartfit.geometry import Display
from smartfit.geometry import Rect
from smartfit.geometry import TargetDimension
from smartfit.stats import FitStats
from smartfit.stats import StatsRecorder

__version__ = "0.1.0"
