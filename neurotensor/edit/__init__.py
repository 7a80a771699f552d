# neurotensor/edit/__init__.py
"""
Structural editor.

Every edit is pure: it returns a new, validated Recording and appends one
entry to its history. Pass `inplace=True` to commit the result into the
given recording instead (the same object is returned).
"""

from .channels import (
    add_channel,
    add_labels,
    channel_index,
    delete_channel,
    delete_optode,
    extract_channel,
    get_channel,
    keep_channel,
    keep_channel_type,
    pick,
    rename_channel,
    replace_channel,
    set_channel_type,
    set_channel_unit,
    signal_channels,
)
from .epochs import (
    delete_epoch,
    epoch,
    epoch_time,
    extract_data,
    extract_epoch,
    extract_eptime,
    extract_time,
    keep_epoch,
    unepoch,
)


__all__ = [
    # channels
    "signal_channels",
    "channel_index",
    "get_channel",
    "pick",
    "extract_channel",
    "rename_channel",
    "set_channel_type",
    "set_channel_unit",
    "add_labels",
    "replace_channel",
    "add_channel",
    "delete_channel",
    "keep_channel",
    "keep_channel_type",
    "delete_optode",

    # epochs
    "epoch",
    "unepoch",
    "epoch_time",
    "extract_epoch",
    "extract_data",
    "extract_time",
    "extract_eptime",
    "delete_epoch",
    "keep_epoch",
]
