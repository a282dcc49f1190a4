"""
Name-keyed registry of chemistry models.
"""

from typing import Sequence

from .base import ModelConfig, SNR


_MODELS: dict[str, type[ModelConfig]] = {}


def register_model(cls: type[ModelConfig]) -> type[ModelConfig]:
    """
    Class decorator registering a model under each of its names.

    Examples
    --------
    >>> @register_model
    ... class MyModel(ModelConfig):
    ...     @classmethod
    ...     def names(cls):
    ...         return {"My/Chem-1"}
    """
    for name in cls.names():
        key = name.upper()
        if key in _MODELS and _MODELS[key] is not cls:
            raise ValueError(f"Model name {name!r} is already registered by {_MODELS[key].__name__}")
        _MODELS[key] = cls
    return cls


def available_models() -> list[str]:
    """Sorted names of all registered models."""
    return sorted(name for cls in set(_MODELS.values()) for name in cls.names())


def get_model(name: str, snr: SNR | Sequence[float]) -> ModelConfig:
    """
    Instantiate a registered model for a read's signal-to-noise ratios.

    Parameters
    ----------
    name : str
        Model name (case-insensitive), e.g. ``"S/P1-C1.2"``
    snr : SNR or sequence of 4 floats
        Channel SNRs in A, C, G, T order

    Raises
    ------
    ValueError
        If no model is registered under ``name``
    """
    cls = _MODELS.get(name.upper())
    if cls is None:
        raise ValueError(
            f"Unknown model '{name}'. Valid models: {', '.join(available_models())}"
        )
    if not isinstance(snr, SNR):
        snr = SNR.from_sequence(snr)
    return cls(snr)
