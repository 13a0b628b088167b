"""
Series Expansion Core Module

This module contains the coefficient storage, the shared auxiliary tables
and the far-field / local expansions of the inverse-power-distance kernel.
"""

from .exceptions import ExpansionError, ExpansionDomainError, ExpansionOrderError
from .coordinates import (
    convert_to_complex_form,
    convert_cartesian_to_spherical,
    pow_with_root_of_unity,
)
from .auxiliary import ExpansionConfig, SeriesExpansionAux
from .coefficients import CoefficientTable
from .expansion import (
    Expansion,
    FarFieldExpansion,
    LocalExpansion,
    farfield_translation_a_range,
    farfield_translation_b_range,
    local_translation_a_range,
    local_translation_b_range,
)

__all__ = [
    'ExpansionError',
    'ExpansionDomainError',
    'ExpansionOrderError',
    'convert_to_complex_form',
    'convert_cartesian_to_spherical',
    'pow_with_root_of_unity',
    'ExpansionConfig',
    'SeriesExpansionAux',
    'CoefficientTable',
    'Expansion',
    'FarFieldExpansion',
    'LocalExpansion',
    'farfield_translation_a_range',
    'farfield_translation_b_range',
    'local_translation_a_range',
    'local_translation_b_range',
]
