"""Reconciliation and the promote/demote/stop controllers."""

from .reconciler import Reconciliation, reconcile
from .promotion import PromotionController
from .demotion import DemotionController
from .stop import StopController

__all__ = [
    'Reconciliation',
    'reconcile',
    'PromotionController',
    'DemotionController',
    'StopController',
]
