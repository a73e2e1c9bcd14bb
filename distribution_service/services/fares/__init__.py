"""
Fares: code sequence, lifecycle engine, transition scheduler, enrichment.
"""
from .codes import FareCodeGenerator, FARE_CODE_PREFIX
from .lifecycle import FareLifecycleEngine
from .scheduler import FareTransitionScheduler, TransitionReport

__all__ = [
    "FareCodeGenerator",
    "FARE_CODE_PREFIX",
    "FareLifecycleEngine",
    "FareTransitionScheduler",
    "TransitionReport",
]
