"""
Processing module for dealer credential rules and stock feed layouts.

Pure functions that reconcile stored advertisement IDs, apply edits to
them and render the CF247 and AA Cars feed files. Nothing here performs I/O.
"""

from .credential_assignment import (
    add_id,
    build_editable_state,
    convert_legacy_to_enhanced,
    is_using_legacy_fields_only,
    prepare_commit,
    reconcile,
    remove_id,
    resolve_advertiser_id,
    set_primary,
    update_id,
    valid_ids,
)
from .feed_export import (
    aacars_dealers_csv,
    aacars_vehicles_csv,
    cf247_dealers_csv,
    cf247_vehicles_csv,
)

__all__ = [
    "aacars_dealers_csv",
    "aacars_vehicles_csv",
    "add_id",
    "build_editable_state",
    "cf247_dealers_csv",
    "cf247_vehicles_csv",
    "convert_legacy_to_enhanced",
    "is_using_legacy_fields_only",
    "prepare_commit",
    "reconcile",
    "remove_id",
    "resolve_advertiser_id",
    "set_primary",
    "update_id",
    "valid_ids",
]
