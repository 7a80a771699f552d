# neurotensor/core/__init__.py
"""
Core domain objects for neurotensor.

This module defines the format-agnostic data model:
- Recording: header + time axes + [channels, samples, epochs] signal tensor
- Header / RecordingInfo / SubjectInfo / ExperimentInfo: recording metadata
- ChannelInfo: one row of the per-channel header arrays
- MarkerTable / LocationTable: events and electrode positions
- Components: typed registry of derived auxiliary values
- OptodePairing: NIRS channel <-> (source, detector) relation

The core layer is independent from I/O and storage formats.
"""

from .channel import (
    CHANNEL_TYPES,
    ChannelInfo,
    DataType,
    Region,
    clean_label,
    detect_channel_type,
    in_region,
    laterality,
)
from .components import AXES, Component, ComponentKind, Components
from .locations import LOCATION_COLUMNS, LocationTable, cart2pol, cart2sph, pol2cart, sph2cart
from .markers import GLOBAL_CHANNEL, MARKER_COLUMNS, MarkerTable
from .metadata import ExperimentInfo, Header, RecordingInfo, SubjectInfo
from .optodes import OptodePair, OptodePairing
from .recording import Recording, commit, operation
from .exceptions import (
    CoreError,
    InvalidArgument,
    StateError,
    PreconditionFailed,
    ChannelNotFound,
    EpochNotFound,
    ComponentNotFound,
)


__all__ = [
    # container
    "Recording",
    "commit",
    "operation",

    # channels
    "CHANNEL_TYPES",
    "ChannelInfo",
    "DataType",
    "Region",
    "clean_label",
    "detect_channel_type",
    "in_region",
    "laterality",

    # metadata
    "Header",
    "RecordingInfo",
    "SubjectInfo",
    "ExperimentInfo",

    # tables
    "MARKER_COLUMNS",
    "GLOBAL_CHANNEL",
    "MarkerTable",
    "LOCATION_COLUMNS",
    "LocationTable",
    "pol2cart",
    "cart2pol",
    "sph2cart",
    "cart2sph",

    # components
    "AXES",
    "Component",
    "ComponentKind",
    "Components",

    # NIRS
    "OptodePair",
    "OptodePairing",

    # exceptions
    "CoreError",
    "InvalidArgument",
    "StateError",
    "PreconditionFailed",
    "ChannelNotFound",
    "EpochNotFound",
    "ComponentNotFound",
]
