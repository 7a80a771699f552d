# neurotensor/process/__init__.py
"""
Signal processing on Recordings.
"""

from .reference import (
    AuricularReference,
    ChannelReference,
    CommonAverageReference,
    EarMode,
    MastoidReference,
    PlanarLaplacianReference,
    ReferenceScheme,
    Statistic,
    reference,
    reference_a,
    reference_car,
    reference_ch,
    reference_m,
    reference_plap,
)


__all__ = [
    # schemes
    "Statistic",
    "EarMode",
    "ChannelReference",
    "CommonAverageReference",
    "AuricularReference",
    "MastoidReference",
    "PlanarLaplacianReference",
    "ReferenceScheme",

    # operations
    "reference",
    "reference_ch",
    "reference_car",
    "reference_a",
    "reference_m",
    "reference_plap",
]
