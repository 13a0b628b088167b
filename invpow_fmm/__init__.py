"""
Inverse-Power-Distance Series Expansions

Far-field and local series expansions of the kernel 1/|x - y|^lambda
and the translation operators used by tree-based N-body summation.

This package includes:
- Far-field (multipole) expansions: P2M, M2P and M2M translation
- Far-to-local conversion (M2L)
- Local expansions: P2L, L2P and L2L translation
- Shared auxiliary tables (multiplicative constants, Gegenbauer polynomials)
- Direct evaluation of the inverse-power-distance kernel

Tree construction and interaction lists are left to the caller.
"""

from invpow_fmm.core import (
    CoefficientTable,
    ExpansionConfig,
    SeriesExpansionAux,
    Expansion,
    FarFieldExpansion,
    LocalExpansion,
    ExpansionError,
    ExpansionDomainError,
    ExpansionOrderError,
)
from invpow_fmm.kernels import (
    Kernel,
    InversePowDistKernel,
    create_kernel,
)

__version__ = '0.1.0'

__all__ = [
    # Core classes
    'CoefficientTable',
    'ExpansionConfig',
    'SeriesExpansionAux',
    'Expansion',
    'FarFieldExpansion',
    'LocalExpansion',
    # Errors
    'ExpansionError',
    'ExpansionDomainError',
    'ExpansionOrderError',
    # Kernels
    'Kernel',
    'InversePowDistKernel',
    'create_kernel',
]
