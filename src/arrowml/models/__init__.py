"""
Chemistry models for read likelihood calculation.

Each model maps a template to per-position transition probabilities and
provides emission probabilities for the match, branch and stick moves:

- **Base classes**: ``ModelConfig``, ``TemplatePosition``, ``MoveType``
- **Registry**: look up a model by name for a read's SNR
- **P1-C1.2**: the ``S/P1-C1.2`` chemistry
"""

from arrowml.models.base import ModelConfig, MomentType, MoveType, SNR, TemplatePosition
from arrowml.models.registry import available_models, get_model, register_model
from arrowml.models.p1c1v2 import P1C1v2Model

__all__ = [
    "ModelConfig",
    "MomentType",
    "MoveType",
    "SNR",
    "TemplatePosition",
    "available_models",
    "get_model",
    "register_model",
    "P1C1v2Model",
]
